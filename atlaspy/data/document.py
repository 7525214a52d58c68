# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Tuple

from atlaspy.constants import DocumentType, FilterType, UpdateType
from atlaspy.data.utils.extended_json_converters import (
    convert_to_ejson_objectid_object,
)
from atlaspy.settings.defaults import CREATED_AT_FIELD, ID_FIELD, UPDATED_AT_FIELD


def saving_update_for(document: DocumentType) -> Tuple[FilterType, UpdateType] | None:
    """
    Compute the filter and the update that write back a document carrying
    an identity, or None if the document has no (truthy) `_id`.

    The identity goes in wire form in both the filter and the `$set` clause;
    the local timestamps are left out, `updatedAt` being set by the server.
    The input document is not modified.
    """
    if not document.get(ID_FIELD):
        return None
    wire_id = convert_to_ejson_objectid_object(document[ID_FIELD])
    set_fields = {
        k: v
        for k, v in document.items()
        if k not in {CREATED_AT_FIELD, UPDATED_AT_FIELD}
    }
    set_fields[ID_FIELD] = wire_id
    return (
        {ID_FIELD: wire_id},
        {
            "$currentDate": {UPDATED_AT_FIELD: True},
            "$set": set_fields,
        },
    )


class SavableDocument(Dict[str, Any]):
    """
    A document as returned by `Collection.find_one`: a regular dictionary,
    with an additional `save` method writing it back to the collection
    it was read from.

    Example:
        >>> doc = my_collection.find_one({"name": "Ada"})
        >>> doc["age"] = 37
        >>> doc.save()
        {'matchedCount': 1, 'modifiedCount': 1}
    """

    def __init__(
        self,
        document: DocumentType,
        *,
        save_function: Callable[[DocumentType], Any],
    ) -> None:
        super().__init__(document)
        self._save_function = save_function

    def save(self) -> Any:
        """
        Write this document back to its collection: an update by `_id`
        if the document has one, an insertion otherwise.

        Returns:
            the raw response from the Data API.
        """
        return self._save_function(self)


class AsyncSavableDocument(Dict[str, Any]):
    """
    A document as returned by `AsyncCollection.find_one`: a regular dictionary,
    with an additional `save` coroutine method writing it back to the collection
    it was read from.
    """

    def __init__(
        self,
        document: DocumentType,
        *,
        save_function: Callable[[DocumentType], Awaitable[Any]],
    ) -> None:
        super().__init__(document)
        self._save_function = save_function

    async def save(self) -> Any:
        """
        Write this document back to its collection: an update by `_id`
        if the document has one, an insertion otherwise.

        Returns:
            the raw response from the Data API.
        """
        return await self._save_function(self)
