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

import os
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from atlaspy.constants import CallerType
from atlaspy.settings.defaults import (
    DEFAULT_REQUEST_TIMEOUT_MS,
    ENV_API_KEY,
    ENV_CLUSTER,
    ENV_DATABASE,
    ENV_ENDPOINT_BASE,
    FIXED_SECRET_PLACEHOLDER,
    SECRETS_REDACT_CHAR,
    SECRETS_REDACT_ENDING,
    SECRETS_REDACT_ENDING_LENGTH,
)
from atlaspy.utils.unset import _UNSET, UnsetType


def _redact_secret(secret: str, max_length: int, hide_if_short: bool = True) -> str:
    """
    Return a shortened-if-necessary version of a 'secret' string (with ellipsis).

    Args:
        secret: a secret string to redact
        max_length: if the secret and the fixed ending exceed this size,
            shortening takes place.
        hide_if_short: this controls what to do when the input secret is
            shorter, i.e. when no shortening takes place.
            if False, the secret is returned as-is;
            If True, a masked string is returned of the same length as secret.

    Returns:
        a 'redacted' form of the secret string as per the rules outlined above.
    """
    secret_len = len(secret)
    if secret_len + SECRETS_REDACT_ENDING_LENGTH > max_length:
        return (
            secret[: max_length - SECRETS_REDACT_ENDING_LENGTH] + SECRETS_REDACT_ENDING
        )
    else:
        if hide_if_short:
            return SECRETS_REDACT_CHAR * len(secret)
        else:
            return secret


@dataclass
class APIOptions:
    """
    This class represents all settings that can be configured for how the
    collection handles reach the Data API: where to send requests, with
    which credentials, and a few details of the HTTP exchange.

    The hierarchy of objects in atlaspy (client -> collection) passes these options
    from parent to child, each level being able to override settings selectively.
    This class admits "unset" attributes: those are inherited from the parent.
    The defaults, and everything else, are resolved once when the configuration
    is assembled (see `defaultAPIOptions` and `api_options_from_environment`):
    collections never read the process environment themselves.

    Attributes:
        api_key: the API key sent, with each request, in the `Api-Key` header.
        endpoint_base: the base URL of the Data API, such as
            "https://data.mongodb-api.com/app/data-abcde/endpoint/data/v1".
            Requests go to `{endpoint_base}/action/{operation}`.
        cluster: the identifier of the cluster (sent as the `dataSource` field).
        database: the name of the database holding the collections.
        callers: a list of caller identities, i.e. applications, or frameworks,
            on behalf of which the Data API calls are performed. These end up
            in the request user-agent.
            Each caller identity is a ("caller_name", "caller_version") pair.
        additional_headers: free-form dictionary of additional headers to employ
            in the requests. A value of None for a key makes it to be ignored.
            Overriding merges with the inherited headers.
        redacted_header_names: A set of (case-insensitive) strings denoting the headers
            that contain secrets, thus are to be masked when logging request details.
            Overriding merges with the inherited names.
        request_timeout_ms: the timeout imposed on a single HTTP request, in
            milliseconds. Zero means that no timeout is imposed.
    """

    api_key: str | None | UnsetType = _UNSET
    endpoint_base: str | None | UnsetType = _UNSET
    cluster: str | None | UnsetType = _UNSET
    database: str | None | UnsetType = _UNSET
    callers: Sequence[CallerType] | UnsetType = _UNSET
    additional_headers: dict[str, str | None] | UnsetType = _UNSET
    redacted_header_names: set[str] | UnsetType = _UNSET
    request_timeout_ms: int | UnsetType = _UNSET

    def __init__(
        self,
        *,
        api_key: str | None | UnsetType = _UNSET,
        endpoint_base: str | None | UnsetType = _UNSET,
        cluster: str | None | UnsetType = _UNSET,
        database: str | None | UnsetType = _UNSET,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        additional_headers: dict[str, str | None] | UnsetType = _UNSET,
        redacted_header_names: Iterable[str] | UnsetType = _UNSET,
        request_timeout_ms: int | UnsetType = _UNSET,
    ) -> None:
        self.api_key = api_key
        self.endpoint_base = endpoint_base
        self.cluster = cluster
        self.database = database
        self.callers = callers
        self.additional_headers = additional_headers
        self.redacted_header_names = (
            _UNSET
            if isinstance(redacted_header_names, UnsetType)
            else set(redacted_header_names)
        )
        self.request_timeout_ms = request_timeout_ms

    def __repr__(self) -> str:
        _redacted_header_names = (
            set()
            if isinstance(self.redacted_header_names, UnsetType)
            else {hn.upper() for hn in self.redacted_header_names}
        )
        _additional_headers: dict[str, str | None] | UnsetType
        if not isinstance(self.additional_headers, UnsetType):
            _additional_headers = {
                k: v
                if k.upper() not in _redacted_header_names
                else FIXED_SECRET_PLACEHOLDER
                for k, v in self.additional_headers.items()
            }
        else:
            _additional_headers = _UNSET
        _api_key_desc: str | None
        if isinstance(self.api_key, str) and self.api_key:
            _api_key_desc = f'api_key="{_redact_secret(self.api_key, 15)}"'
        else:
            _api_key_desc = None

        non_unset_pieces = [
            pc
            for pc in (
                _api_key_desc,
                None
                if isinstance(self.endpoint_base, UnsetType)
                else f"endpoint_base={self.endpoint_base}",
                None
                if isinstance(self.cluster, UnsetType)
                else f"cluster={self.cluster}",
                None
                if isinstance(self.database, UnsetType)
                else f"database={self.database}",
                None
                if isinstance(self.callers, UnsetType)
                else f"callers={self.callers}",
                None
                if isinstance(_additional_headers, UnsetType)
                else f"additional_headers={_additional_headers}",
                None
                if isinstance(self.redacted_header_names, UnsetType)
                else f"redacted_header_names={self.redacted_header_names}",
                None
                if isinstance(self.request_timeout_ms, UnsetType)
                else f"request_timeout_ms={self.request_timeout_ms}",
            )
            if pc is not None
        ]
        inner_desc = ", ".join(non_unset_pieces)
        return f"{self.__class__.__name__}({inner_desc})"


@dataclass
class FullAPIOptions(APIOptions):
    """
    The "full" version of the API options, with the guarantee that all of its
    members have defined values. This is what the DataAPIClient and the
    collection classes have in their `.api_options` attribute -- as opposed
    to the (non-full) `APIOptions` class, which admits "unset" attributes
    and is used to override specific settings.

    See `APIOptions` for a description of the attributes.
    """

    api_key: str | None
    endpoint_base: str | None
    cluster: str | None
    database: str | None
    callers: Sequence[CallerType]
    additional_headers: dict[str, str | None]
    redacted_header_names: set[str]
    request_timeout_ms: int

    def __init__(
        self,
        *,
        api_key: str | None,
        endpoint_base: str | None,
        cluster: str | None,
        database: str | None,
        callers: Sequence[CallerType],
        additional_headers: dict[str, str | None],
        redacted_header_names: Iterable[str],
        request_timeout_ms: int,
    ) -> None:
        APIOptions.__init__(
            self,
            api_key=api_key,
            endpoint_base=endpoint_base,
            cluster=cluster,
            database=database,
            callers=callers,
            additional_headers=additional_headers,
            redacted_header_names=redacted_header_names,
            request_timeout_ms=request_timeout_ms,
        )

    def __repr__(self) -> str:
        # the dataclass-generated repr would expose the API key
        return APIOptions.__repr__(self)

    def with_override(self, other: APIOptions | None | UnsetType) -> FullAPIOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        The override logic is such that defined attributes completely replace the
        pre-existing ones, except for the case of `additional_headers` and
        `redacted_header_names`, in which cases merging takes place.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        if isinstance(other, UnsetType) or other is None:
            return self

        additional_headers: dict[str, str | None]
        redacted_header_names: set[str]

        if isinstance(other.additional_headers, UnsetType):
            additional_headers = self.additional_headers
        else:
            additional_headers = {
                **self.additional_headers,
                **other.additional_headers,
            }
        if isinstance(other.redacted_header_names, UnsetType):
            redacted_header_names = self.redacted_header_names
        else:
            redacted_header_names = (
                self.redacted_header_names | other.redacted_header_names
            )

        return FullAPIOptions(
            api_key=(
                other.api_key
                if not isinstance(other.api_key, UnsetType)
                else self.api_key
            ),
            endpoint_base=(
                other.endpoint_base
                if not isinstance(other.endpoint_base, UnsetType)
                else self.endpoint_base
            ),
            cluster=(
                other.cluster
                if not isinstance(other.cluster, UnsetType)
                else self.cluster
            ),
            database=(
                other.database
                if not isinstance(other.database, UnsetType)
                else self.database
            ),
            callers=(
                other.callers
                if not isinstance(other.callers, UnsetType)
                else self.callers
            ),
            additional_headers=additional_headers,
            redacted_header_names=redacted_header_names,
            request_timeout_ms=(
                other.request_timeout_ms
                if not isinstance(other.request_timeout_ms, UnsetType)
                else self.request_timeout_ms
            ),
        )


def defaultAPIOptions() -> FullAPIOptions:
    """
    Return the default APIOptions object, based on 'grand defaults'
    hardcoded in atlaspy. No credentials nor endpoint are part of these.
    """

    return FullAPIOptions(
        api_key=None,
        endpoint_base=None,
        cluster=None,
        database=None,
        callers=[],
        additional_headers={},
        redacted_header_names=set(),
        request_timeout_ms=DEFAULT_REQUEST_TIMEOUT_MS,
    )


def api_options_from_environment(
    environ: Mapping[str, str] | None = None,
) -> APIOptions:
    """
    Read the connection settings from environment variables, once.

    The variables are `KEY` (the API key), `URL_BASE` (the endpoint base),
    `CLUSTER` and `DATABASE`. Variables that are not defined leave the
    corresponding setting unset, so that the result can be used to
    override other options.

    Args:
        environ: a mapping to read the variables from. Defaults to `os.environ`.

    Returns:
        an APIOptions object.
    """

    _environ = os.environ if environ is None else environ

    def _read(var_name: str) -> str | UnsetType:
        value = _environ.get(var_name)
        return _UNSET if value is None else value

    return APIOptions(
        api_key=_read(ENV_API_KEY),
        endpoint_base=_read(ENV_ENDPOINT_BASE),
        cluster=_read(ENV_CLUSTER),
        database=_read(ENV_DATABASE),
    )
