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

import dataclasses
import datetime
import logging
from types import TracebackType
from typing import Any

from typing_extensions import Self

from atlaspy.constants import (
    DocumentType,
    FilterType,
    ProjectionType,
    SortType,
    UpdateType,
    normalize_projection,
)
from atlaspy.data.document import (
    AsyncSavableDocument,
    SavableDocument,
    saving_update_for,
)
from atlaspy.data.operation import OperationKind, PendingOperation
from atlaspy.data.utils.extended_json_converters import (
    convert_to_ejson_objectid_object,
)
from atlaspy.exceptions import _TimeoutContext
from atlaspy.settings.defaults import (
    DATA_API_ACTION_PATH,
    DEFAULT_DATA_API_AUTH_HEADER,
    ID_FIELD,
)
from atlaspy.utils.api_commander import APICommander
from atlaspy.utils.api_options import APIOptions, FullAPIOptions
from atlaspy.utils.unset import _UNSET, UnsetType

logger = logging.getLogger(__name__)


def _check_required_options(class_name: str, api_options: FullAPIOptions) -> None:
    for setting_name, setting_value in (
        ("endpoint_base", api_options.endpoint_base),
        ("cluster", api_options.cluster),
        ("database", api_options.database),
    ):
        if setting_value is None:
            raise ValueError(
                f"Attempted to create {class_name} with '{setting_name}' unset."
            )


def _check_limit(limit: int) -> int:
    if limit < 0:
        raise ValueError(f"The limit cannot be negative (got {limit}).")
    return limit


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Collection:
    """
    A collection on the Data API, offering a familiar driver-like interface
    whose operations are each translated into one HTTP request.
    This class has a synchronous interface.

    Reads are staged with chainable methods and executed with `exec`;
    `find_one` and all writes are executed right away. Between one execution
    and the next, the collection holds the "pending operation" being staged:
    each execution consumes it and starts over from a blank one, so that
    nothing carries over from a chain to the next.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_collection` of
    DataAPIClient, wherefrom the Collection inherits its API options such as
    API key and endpoint.

    Args:
        name: the collection name.
        api_key: an API key, overriding the one in `api_options` if provided.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> from atlaspy import DataAPIClient
        >>> client = DataAPIClient.from_environment()
        >>> users = client.get_collection("users")
        >>> users.insert_one({"name": "Ada", "status": "open"})
        {'insertedId': '6650...'}
        >>> users.find({"status": "open"}).sort({"name": 1}).limit(2).select(
        ...     "name"
        ... ).exec()
        [{'_id': '6650...', 'name': 'Ada'}]
        >>> ada = users.find_one({"name": "Ada"})
        >>> ada["status"] = "closed"
        >>> ada.save()
        {'matchedCount': 1, 'modifiedCount': 1}

    Note:
        The staging methods of a chain (`find`, `sort`, `limit`, `select`) all
        act on the one pending operation of the collection, and a chain must
        run to its `exec` before another is started on the same object.
    """

    def __init__(
        self,
        name: str,
        api_key: str | None | UnsetType = _UNSET,
        *,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options.with_override(APIOptions(api_key=api_key))
        self._name = name
        _check_required_options(self.__class__.__name__, self.api_options)
        self._commander_headers = {
            **{DEFAULT_DATA_API_AUTH_HEADER: self.api_options.api_key},
            **self.api_options.additional_headers,
        }
        self._api_commander = self._get_api_commander()
        self._pending = PendingOperation()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'database="{self.database}", api_options={self.api_options})'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Collection):
            return all(
                [
                    self._name == other._name,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        return APICommander(
            api_endpoint=self.api_options.endpoint_base or "",
            path=DATA_API_ACTION_PATH,
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _copy(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        arg_api_options = APIOptions(api_key=api_key)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return Collection(self.name, api_options=final_api_options)

    def with_options(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        """
        Create a clone of this collection with some changed attributes.
        The clone starts with a blank pending operation.

        Args:
            api_key: an API key to use instead of the current one.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new Collection instance.

        Example:
            >>> other_key_users = users.with_options(api_key="another-key")
        """

        return self._copy(api_key=api_key, api_options=api_options)

    def to_async(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        """
        Create an AsyncCollection from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this collection in the copy (the pending operation excluded).

        Args:
            api_key: an API key to use instead of the current one.
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).

        Returns:
            the new copy, an AsyncCollection instance.

        Example:
            >>> asyncio.run(users.to_async().find({}).limit(1).exec())
            [{'_id': '6650...', 'name': 'Ada'}]
        """

        arg_api_options = APIOptions(api_key=api_key)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return AsyncCollection(self.name, api_options=final_api_options)

    @property
    def name(self) -> str:
        """
        The name of this collection.
        """

        return self._name

    @property
    def database(self) -> str | None:
        """
        The name of the database this collection belongs to.
        """

        return self.api_options.database

    @property
    def pending_operation(self) -> PendingOperation:
        """
        A copy of the operation currently staged on this collection.
        """

        return dataclasses.replace(self._pending)

    def _take_pending(self) -> PendingOperation:
        # the staged operation is detached before anything else can happen,
        # leaving a blank one in its place.
        pending = self._pending
        self._pending = PendingOperation()
        return pending

    def _request(self, kind: OperationKind, body: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "dataSource": self.api_options.cluster,
            "database": self.api_options.database,
            "collection": self.name,
            **body,
        }
        return self._api_commander.request(
            payload=payload,
            additional_path=kind.value,
            timeout_context=_TimeoutContext(
                request_ms=self.api_options.request_timeout_ms,
                label="request_timeout_ms",
            ),
        )

    def find(self, filter: FilterType | None = None) -> Self:
        """
        Stage a `find` operation. Nothing is sent to the API until `exec` is called.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax. Examples are:
                    {}
                    {"name": "John"}
                    {"price": {"$lt": 100}}
                    {"$and": [{"name": "John"}, {"price": {"$lt": 100}}]}

        Returns:
            this same collection, for further chaining.
        """

        self._pending.kind = OperationKind.FIND
        self._pending.filter = filter or {}
        return self

    def sort(self, sort: SortType | None = None) -> Self:
        """
        Set the sort order of the staged read, e.g. `{"name": SortMode.ASCENDING}`.
        """

        self._pending.sort = sort or {}
        return self

    def limit(self, limit: int = 0) -> Self:
        """
        Set the maximum number of documents returned by the staged `find`.
        """

        self._pending.limit = _check_limit(limit)
        return self

    def select(self, projection: ProjectionType | None = None) -> Self:
        """
        Set the fields to return with the staged read.

        Args:
            projection: either a dictionary such as `{"name": 1, "age": 1}`,
                a space-separated string of field names such as `"name age"`,
                or an iterable of field names. The latter two forms are
                equivalent to the dictionary with all listed fields set to 1.

        Returns:
            this same collection, for further chaining.
        """

        self._pending.projection = normalize_projection(projection)
        return self

    def exec(self) -> Any:
        """
        Execute the staged operation and reset this collection to a blank
        pending operation (whatever the outcome of the execution).

        Returns:
            for `find`, the list of documents found (possibly empty);
            for `findOne`, the document found or None;
            for the write operations, the raw response from the API.

        Raises:
            InvalidOperationException: if an update or a delete is attempted with
                an empty filter. In this case no request is made at all.

        Example:
            >>> users.find({"status": "open"}).limit(10).exec()
            [{'_id': '6650...', 'name': 'Ada', 'status': 'open'}]
        """

        pending = self._take_pending()
        body = pending.to_request_body(now=_utc_now())
        logger.info(f"{pending.kind.value} on '{self.name}'")
        response = self._request(pending.kind, body)
        logger.info(f"finished {pending.kind.value} on '{self.name}'")
        return pending.normalize_response(response)

    def find_one(self, filter: FilterType | None = None) -> SavableDocument | None:
        """
        Find a single document and return it right away. A projection set
        earlier with `select` applies.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.

        Returns:
            a dictionary expressing the document, with an added `save` method
            to write it back; or None if no document matches.

        Example:
            >>> users.select("name").find_one({"status": "open"})
            {'_id': '6650...', 'name': 'Ada'}
        """

        self._pending.kind = OperationKind.FIND_ONE
        self._pending.filter = filter or {}
        document = self.exec()
        if document is None:
            return None
        return SavableDocument(document, save_function=self._save_document)

    def find_by_id(self, id: Any) -> SavableDocument | None:
        """
        Find the document with the given `_id`. See `find_one`.
        """

        return self.find_one({ID_FIELD: convert_to_ejson_objectid_object(id)})

    def find_by_id_and_update(self, id: Any, update: UpdateType) -> dict[str, Any]:
        """
        Update the document with the given `_id`. See `update_one`.
        """

        return self.update_one({ID_FIELD: convert_to_ejson_objectid_object(id)}, update)

    def insert_one(self, document: DocumentType) -> dict[str, Any]:
        """
        Insert a single document, right away.

        The document is stored with its `createdAt` and `updatedAt` fields both
        set to the current time, replacing any values provided for them.

        Args:
            document: the dictionary expressing the document to insert.

        Returns:
            the raw response from the API, such as `{"insertedId": "..."}`.
        """

        self._pending.kind = OperationKind.INSERT_ONE
        self._pending.document = document
        return self.exec()  # type: ignore[no-any-return]

    def create(self, document: DocumentType) -> dict[str, Any]:
        """
        Same as `insert_one`.
        """

        return self.insert_one(document)

    def update_one(self, filter: FilterType, update: UpdateType) -> dict[str, Any]:
        """
        Update a single document matching the filter, right away.

        Args:
            filter: a non-empty predicate expressed as a dictionary.
            update: the update prescription, such as `{"$set": {"status": "closed"}}`.

        Returns:
            the raw response from the API, such as
            `{"matchedCount": 1, "modifiedCount": 1}`.

        Raises:
            InvalidOperationException: if the filter is empty.
        """

        self._pending.kind = OperationKind.UPDATE_ONE
        self._pending.filter = filter
        self._pending.update = update
        return self.exec()  # type: ignore[no-any-return]

    def update_many(self, filter: FilterType, update: UpdateType) -> dict[str, Any]:
        """
        Update all documents matching the filter, right away.
        See `update_one` for the arguments and the return value.
        """

        self._pending.kind = OperationKind.UPDATE_MANY
        self._pending.filter = filter
        self._pending.update = update
        return self.exec()  # type: ignore[no-any-return]

    def delete_one(self, filter: FilterType) -> dict[str, Any]:
        """
        Delete a single document matching the filter, right away.

        Args:
            filter: a non-empty predicate expressed as a dictionary.

        Returns:
            the raw response from the API, such as `{"deletedCount": 1}`.

        Raises:
            InvalidOperationException: if the filter is empty.
        """

        self._pending.kind = OperationKind.DELETE_ONE
        self._pending.filter = filter
        return self.exec()  # type: ignore[no-any-return]

    def delete_many(self, filter: FilterType) -> dict[str, Any]:
        """
        Delete all documents matching the filter, right away.
        See `delete_one` for the arguments and the return value.
        """

        self._pending.kind = OperationKind.DELETE_MANY
        self._pending.filter = filter
        return self.exec()  # type: ignore[no-any-return]

    def _save_document(self, document: DocumentType) -> dict[str, Any]:
        saving_update = saving_update_for(document)
        if saving_update is not None:
            id_filter, update = saving_update
            return self.update_one(id_filter, update)
        else:
            return self.insert_one(dict(document))


class AsyncCollection:
    """
    A collection on the Data API, offering a familiar driver-like interface
    whose operations are each translated into one HTTP request.
    This class has an asynchronous interface for use with asyncio.

    The staging methods (`find`, `sort`, `limit`, `select`) are plain methods
    returning the collection itself; `exec`, `find_one` and all writes are
    coroutines. See `Collection` for the general behaviour.

    Args:
        name: the collection name.
        api_key: an API key, overriding the one in `api_options` if provided.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> async def open_ones(acol: AsyncCollection) -> list[dict[str, Any]]:
        ...     return await acol.find({"status": "open"}).select("name").exec()

    Note:
        The pending operation is detached from the collection when an execution
        starts, before any await: operations executing right away (`find_one`,
        writes) can therefore be run concurrently on the same object. A chain
        ending in `exec`, on the other hand, must not be interleaved with
        another chain on the same object; `with_options()` returns an
        independent clone for that purpose.
    """

    def __init__(
        self,
        name: str,
        api_key: str | None | UnsetType = _UNSET,
        *,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options.with_override(APIOptions(api_key=api_key))
        self._name = name
        _check_required_options(self.__class__.__name__, self.api_options)
        self._commander_headers = {
            **{DEFAULT_DATA_API_AUTH_HEADER: self.api_options.api_key},
            **self.api_options.additional_headers,
        }
        self._api_commander = self._get_api_commander()
        self._pending = PendingOperation()

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'database="{self.database}", api_options={self.api_options})'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncCollection):
            return all(
                [
                    self._name == other._name,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        return APICommander(
            api_endpoint=self.api_options.endpoint_base or "",
            path=DATA_API_ACTION_PATH,
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    async def __aenter__(self) -> AsyncCollection:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._api_commander.__aexit__(
            exc_type=exc_type,
            exc_value=exc_value,
            traceback=traceback,
        )

    def _copy(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        arg_api_options = APIOptions(api_key=api_key)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return AsyncCollection(self.name, api_options=final_api_options)

    def with_options(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        """
        Create a clone of this collection with some changed attributes.
        The clone starts with a blank pending operation.

        Args:
            api_key: an API key to use instead of the current one.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new AsyncCollection instance.
        """

        return self._copy(api_key=api_key, api_options=api_options)

    def to_sync(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        """
        Create a Collection from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this collection in the copy (the pending operation excluded).

        Args:
            api_key: an API key to use instead of the current one.
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).

        Returns:
            the new copy, a Collection instance.
        """

        arg_api_options = APIOptions(api_key=api_key)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return Collection(self.name, api_options=final_api_options)

    @property
    def name(self) -> str:
        """
        The name of this collection.
        """

        return self._name

    @property
    def database(self) -> str | None:
        """
        The name of the database this collection belongs to.
        """

        return self.api_options.database

    @property
    def pending_operation(self) -> PendingOperation:
        """
        A copy of the operation currently staged on this collection.
        """

        return dataclasses.replace(self._pending)

    def _take_pending(self) -> PendingOperation:
        # the staged operation is detached before the first await,
        # leaving a blank one in its place.
        pending = self._pending
        self._pending = PendingOperation()
        return pending

    async def _request(
        self, kind: OperationKind, body: dict[str, Any]
    ) -> dict[str, Any]:
        payload = {
            "dataSource": self.api_options.cluster,
            "database": self.api_options.database,
            "collection": self.name,
            **body,
        }
        return await self._api_commander.async_request(
            payload=payload,
            additional_path=kind.value,
            timeout_context=_TimeoutContext(
                request_ms=self.api_options.request_timeout_ms,
                label="request_timeout_ms",
            ),
        )

    def find(self, filter: FilterType | None = None) -> Self:
        """
        Stage a `find` operation. Nothing is sent to the API until `exec` is awaited.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.

        Returns:
            this same collection, for further chaining.
        """

        self._pending.kind = OperationKind.FIND
        self._pending.filter = filter or {}
        return self

    def sort(self, sort: SortType | None = None) -> Self:
        """
        Set the sort order of the staged read, e.g. `{"name": SortMode.ASCENDING}`.
        """

        self._pending.sort = sort or {}
        return self

    def limit(self, limit: int = 0) -> Self:
        """
        Set the maximum number of documents returned by the staged `find`.
        """

        self._pending.limit = _check_limit(limit)
        return self

    def select(self, projection: ProjectionType | None = None) -> Self:
        """
        Set the fields to return with the staged read. See `Collection.select`.
        """

        self._pending.projection = normalize_projection(projection)
        return self

    async def exec(self) -> Any:
        """
        Execute the staged operation and reset this collection to a blank
        pending operation (whatever the outcome of the execution).

        Returns:
            for `find`, the list of documents found (possibly empty);
            for `findOne`, the document found or None;
            for the write operations, the raw response from the API.

        Raises:
            InvalidOperationException: if an update or a delete is attempted with
                an empty filter. In this case no request is made at all.

        Example:
            >>> asyncio.run(ausers.find({"status": "open"}).limit(10).exec())
            [{'_id': '6650...', 'name': 'Ada', 'status': 'open'}]
        """

        pending = self._take_pending()
        body = pending.to_request_body(now=_utc_now())
        logger.info(f"{pending.kind.value} on '{self.name}'")
        response = await self._request(pending.kind, body)
        logger.info(f"finished {pending.kind.value} on '{self.name}'")
        return pending.normalize_response(response)

    async def find_one(
        self, filter: FilterType | None = None
    ) -> AsyncSavableDocument | None:
        """
        Find a single document and return it. A projection set
        earlier with `select` applies.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.

        Returns:
            a dictionary expressing the document, with an added `save` coroutine
            method to write it back; or None if no document matches.
        """

        self._pending.kind = OperationKind.FIND_ONE
        self._pending.filter = filter or {}
        document = await self.exec()
        if document is None:
            return None
        return AsyncSavableDocument(document, save_function=self._save_document)

    async def find_by_id(self, id: Any) -> AsyncSavableDocument | None:
        """
        Find the document with the given `_id`. See `find_one`.
        """

        return await self.find_one({ID_FIELD: convert_to_ejson_objectid_object(id)})

    async def find_by_id_and_update(
        self, id: Any, update: UpdateType
    ) -> dict[str, Any]:
        """
        Update the document with the given `_id`. See `update_one`.
        """

        return await self.update_one(
            {ID_FIELD: convert_to_ejson_objectid_object(id)}, update
        )

    async def insert_one(self, document: DocumentType) -> dict[str, Any]:
        """
        Insert a single document.

        The document is stored with its `createdAt` and `updatedAt` fields both
        set to the current time, replacing any values provided for them.

        Args:
            document: the dictionary expressing the document to insert.

        Returns:
            the raw response from the API, such as `{"insertedId": "..."}`.
        """

        self._pending.kind = OperationKind.INSERT_ONE
        self._pending.document = document
        return await self.exec()  # type: ignore[no-any-return]

    async def create(self, document: DocumentType) -> dict[str, Any]:
        """
        Same as `insert_one`.
        """

        return await self.insert_one(document)

    async def update_one(
        self, filter: FilterType, update: UpdateType
    ) -> dict[str, Any]:
        """
        Update a single document matching the filter.

        Args:
            filter: a non-empty predicate expressed as a dictionary.
            update: the update prescription, such as `{"$set": {"status": "closed"}}`.

        Returns:
            the raw response from the API.

        Raises:
            InvalidOperationException: if the filter is empty.
        """

        self._pending.kind = OperationKind.UPDATE_ONE
        self._pending.filter = filter
        self._pending.update = update
        return await self.exec()  # type: ignore[no-any-return]

    async def update_many(
        self, filter: FilterType, update: UpdateType
    ) -> dict[str, Any]:
        """
        Update all documents matching the filter.
        See `update_one` for the arguments and the return value.
        """

        self._pending.kind = OperationKind.UPDATE_MANY
        self._pending.filter = filter
        self._pending.update = update
        return await self.exec()  # type: ignore[no-any-return]

    async def delete_one(self, filter: FilterType) -> dict[str, Any]:
        """
        Delete a single document matching the filter.

        Args:
            filter: a non-empty predicate expressed as a dictionary.

        Returns:
            the raw response from the API, such as `{"deletedCount": 1}`.

        Raises:
            InvalidOperationException: if the filter is empty.
        """

        self._pending.kind = OperationKind.DELETE_ONE
        self._pending.filter = filter
        return await self.exec()  # type: ignore[no-any-return]

    async def delete_many(self, filter: FilterType) -> dict[str, Any]:
        """
        Delete all documents matching the filter.
        See `delete_one` for the arguments and the return value.
        """

        self._pending.kind = OperationKind.DELETE_MANY
        self._pending.filter = filter
        return await self.exec()  # type: ignore[no-any-return]

    async def _save_document(self, document: DocumentType) -> dict[str, Any]:
        saving_update = saving_update_for(document)
        if saving_update is not None:
            id_filter, update = saving_update
            return await self.update_one(id_filter, update)
        else:
            return await self.insert_one(dict(document))
