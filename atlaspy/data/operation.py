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

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from atlaspy.constants import DocumentType, FilterType, SortType, UpdateType
from atlaspy.data.utils.extended_json_converters import convert_to_ejson_date_object
from atlaspy.exceptions import InvalidOperationException
from atlaspy.settings.defaults import CREATED_AT_FIELD, UPDATED_AT_FIELD


class OperationKind(str, Enum):
    """
    The operations a collection can send to the Data API. The values are
    the names of the API actions, i.e. the last segment of the request URL.
    """

    FIND = "find"
    FIND_ONE = "findOne"
    INSERT_ONE = "insertOne"
    UPDATE_ONE = "updateOne"
    UPDATE_MANY = "updateMany"
    DELETE_ONE = "deleteOne"
    DELETE_MANY = "deleteMany"


@dataclass
class PendingOperation:
    """
    The operation being staged on a collection, accumulating the settings
    given through the chainable methods until it is executed.

    A freshly-created instance is the "default record" a collection goes back
    to after every execution.
    """

    kind: OperationKind = OperationKind.FIND
    filter: FilterType = field(default_factory=dict)
    sort: SortType = field(default_factory=dict)
    limit: int | None = None
    projection: dict[str, Any] = field(default_factory=dict)
    update: UpdateType = field(default_factory=dict)
    document: DocumentType | None = None

    def to_request_body(self, now: datetime.datetime) -> dict[str, Any]:
        """
        Build the operation-specific part of the request body.

        Args:
            now: the timestamp to stamp inserted documents with.

        Returns:
            a dictionary, to be merged with the routing fields of the request.

        Raises:
            InvalidOperationException: for updates and deletes with an empty filter.
        """
        if self.kind == OperationKind.FIND:
            body: dict[str, Any] = {
                "filter": self.filter,
                "sort": self.sort,
                "projection": self.projection,
            }
            if self.limit is not None:
                body["limit"] = self.limit
            return body
        elif self.kind == OperationKind.FIND_ONE:
            return {
                "filter": self.filter,
                "projection": self.projection,
            }
        elif self.kind == OperationKind.INSERT_ONE:
            date_object = convert_to_ejson_date_object(now)
            return {
                "document": {
                    **(self.document or {}),
                    CREATED_AT_FIELD: date_object,
                    UPDATED_AT_FIELD: dict(date_object),
                },
            }
        elif self.kind in (OperationKind.UPDATE_ONE, OperationKind.UPDATE_MANY):
            self._ensure_filter()
            return {
                "filter": self.filter,
                "update": {**self.update},
            }
        elif self.kind in (OperationKind.DELETE_ONE, OperationKind.DELETE_MANY):
            self._ensure_filter()
            return {"filter": self.filter}
        else:
            raise ValueError(f"Unknown operation kind: '{self.kind}'.")

    def normalize_response(self, response: dict[str, Any]) -> Any:
        """
        Strip the API response of its envelope: the list of documents for `find`,
        the document (or None) for `findOne`, the whole response otherwise.
        """
        if self.kind == OperationKind.FIND:
            documents = response.get("documents")
            return documents if documents is not None else []
        elif self.kind == OperationKind.FIND_ONE:
            return response.get("document")
        else:
            return response

    def _ensure_filter(self) -> None:
        if not self.filter:
            raise InvalidOperationException(
                f"{self.kind.value} requires a non-empty filter.",
                operation_kind=self.kind.value,
            )
