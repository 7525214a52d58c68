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

import logging
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from atlaspy.constants import CallerType
from atlaspy.utils.api_options import (
    APIOptions,
    api_options_from_environment,
    defaultAPIOptions,
)
from atlaspy.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from atlaspy.data.collection import AsyncCollection, Collection


logger = logging.getLogger(__name__)


class DataAPIClient:
    """
    A client for using the Data API. This is the entry point, where the
    configuration (API key, endpoint, cluster and database) is assembled once,
    and the place to obtain Collection and AsyncCollection objects from.

    Args:
        api_key: the API key, sent with each request in the `Api-Key` header.
        endpoint_base: the base URL of the Data API, e.g.
            "https://data.mongodb-api.com/app/data-abcde/endpoint/data/v1".
        cluster: the cluster identifier (the `dataSource` of the requests).
        database: the name of the database.
        callers: a list of caller identities, i.e. applications, or frameworks,
            on behalf of which Data API calls are performed.
            These end up in the request user-agent.
            Each caller identity is a ("caller_name", "caller_version") pair.
        api_options: a specification - complete or partial - of the API Options
            to override the system defaults. If this is passed alongside the
            named parameters above, those will take precedence.

    Example:
        >>> from atlaspy import DataAPIClient
        >>> my_client = DataAPIClient(
        ...     api_key="...",
        ...     endpoint_base="https://data.mongodb-api.com/app/data-abcde/endpoint/data/v1",
        ...     cluster="Cluster0",
        ...     database="shop",
        ... )
        >>> orders = my_client.get_collection("orders")
        >>> orders.find({"status": "open"}).limit(5).exec()
        [...]
    """

    def __init__(
        self,
        api_key: str | None | UnsetType = _UNSET,
        *,
        endpoint_base: str | None | UnsetType = _UNSET,
        cluster: str | None | UnsetType = _UNSET,
        database: str | None | UnsetType = _UNSET,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> None:
        arg_api_options = APIOptions(
            api_key=api_key,
            endpoint_base=endpoint_base,
            cluster=cluster,
            database=database,
            callers=callers,
        )
        self.api_options = (
            defaultAPIOptions()
            .with_override(api_options)
            .with_override(arg_api_options)
        )

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> DataAPIClient:
        """
        Create a client configured from the environment variables
        `KEY`, `URL_BASE`, `CLUSTER` and `DATABASE`.

        Args:
            environ: a mapping to read the variables from. Defaults to `os.environ`.
            api_options: further options, taking precedence over the environment.

        Returns:
            a DataAPIClient.

        Example:
            >>> client = DataAPIClient.from_environment()
            >>> client.api_options.cluster
            'Cluster0'
        """

        env_api_options = api_options_from_environment(environ)
        logger.info("creating DataAPIClient from environment")
        return cls(
            api_options=defaultAPIOptions()
            .with_override(env_api_options)
            .with_override(api_options)
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.api_options})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, DataAPIClient):
            return self.api_options == other.api_options
        else:
            return False

    def __getitem__(self, collection_name: str) -> Collection:
        return self.get_collection(collection_name)

    def with_options(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> DataAPIClient:
        """
        Create a clone of this DataAPIClient with some changed attributes.

        Args:
            api_key: an API key to use instead of the current one.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new DataAPIClient instance.
        """

        arg_api_options = APIOptions(api_key=api_key)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return DataAPIClient(api_options=final_api_options)

    def get_collection(
        self,
        name: str,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        """
        Get a Collection object for the named collection. No request is made.

        Args:
            name: the name of the collection.
            api_key: an API key for this collection only, overriding the client's.
            api_options: any additional options for the collection.

        Returns:
            a Collection instance.

        Example:
            >>> users = my_client.get_collection("users")
            >>> users.find_one({"name": "Ada"})
            {'_id': '6650...', 'name': 'Ada'}
        """

        # lazy importing here against circular-import error
        from atlaspy.data.collection import Collection

        return Collection(
            name,
            api_key,
            api_options=self.api_options.with_override(api_options),
        )

    def get_async_collection(
        self,
        name: str,
        *,
        api_key: str | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        """
        Get an AsyncCollection object for the named collection. No request is made.

        Args:
            name: the name of the collection.
            api_key: an API key for this collection only, overriding the client's.
            api_options: any additional options for the collection.

        Returns:
            an AsyncCollection instance.
        """

        # lazy importing here against circular-import error
        from atlaspy.data.collection import AsyncCollection

        return AsyncCollection(
            name,
            api_key,
            api_options=self.api_options.with_override(api_options),
        )
