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

from dataclasses import dataclass
from typing import Any

import httpx

from atlaspy.exceptions.error_descriptors import DataAPIErrorDescriptor


class DataAPIException(Exception):
    """
    Any exception occurred while preparing or issuing requests to the Data API
    and specific to it, such as:
      - an update is attempted with an empty filter,
      - the API responds with an HTTP error status,
    but not, for instance,
      - a network error while sending an HTTP request to the API.
    """

    pass


@dataclass
class InvalidOperationException(DataAPIException, ValueError):
    """
    The staged operation cannot be sent to the API as it is. This is raised
    before any network activity, e.g. when an update or a delete is executed
    with an empty filter (which would otherwise hit arbitrary documents).

    Attributes:
        text: a text message about the exception.
        operation_kind: the name of the operation that was rejected
            (e.g. "updateOne").
    """

    text: str
    operation_kind: str

    def __init__(
        self,
        text: str,
        *,
        operation_kind: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.operation_kind = operation_kind

    def __str__(self) -> str:
        return self.text


@dataclass
class DataAPIHttpException(DataAPIException, httpx.HTTPStatusError):
    """
    A request to the Data API resulted in an HTTP 4xx or 5xx response.

    In most cases this comes with additional information: the purpose
    of this class is to present such information in a structured way,
    while still raising (a subclass of) `httpx.HTTPStatusError`.

    Attributes:
        text: a text message about the exception.
        error_descriptors: a list of all DataAPIErrorDescriptor objects
            found in the response.
    """

    text: str | None
    error_descriptors: list[DataAPIErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        httpx_error: httpx.HTTPStatusError,
        error_descriptors: list[DataAPIErrorDescriptor],
    ) -> None:
        DataAPIException.__init__(self, text)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.error_descriptors = error_descriptors

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
        **kwargs: Any,
    ) -> DataAPIHttpException:
        """Parse a httpx status error into this exception."""

        raw_response: Any
        # the attempt to extract a response structure cannot afford failure.
        try:
            raw_response = httpx_error.response.json() or {}
        except Exception:
            raw_response = {}
        error_descriptors: list[DataAPIErrorDescriptor]
        if isinstance(raw_response, dict) and "error" in raw_response:
            error_descriptors = [DataAPIErrorDescriptor(raw_response)]
        else:
            error_descriptors = []
        if error_descriptors:
            text = f"{error_descriptors[0].summary()}. {str(httpx_error)}"
        else:
            text = str(httpx_error)

        return cls(
            text=text,
            httpx_error=httpx_error,
            error_descriptors=error_descriptors,
            **kwargs,
        )


@dataclass
class DataAPITimeoutException(DataAPIException):
    """
    A Data API request timed out, as per the `request_timeout_ms` setting.

    Attributes:
        text: a textual description of the error
        timeout_type: this denotes the phase of the HTTP request when the event
            occurred ("connect", "read", "write", "pool") or "generic" if there is
            not a specific phase associated to the exception.
        endpoint: the URL that the request was targeting, if available.
        raw_payload: the associated payload (as a string), if available.
    """

    text: str
    timeout_type: str
    endpoint: str | None
    raw_payload: str | None

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
        raw_payload: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.timeout_type = timeout_type
        self.endpoint = endpoint
        self.raw_payload = raw_payload


@dataclass
class DataAPIFaultyResponseException(DataAPIException):
    """
    The Data API response cannot be used at all: it is not valid JSON,
    or it is not a JSON object.

    Attributes:
        text: a text message about the exception.
        raw_response: the response returned by the API, wrapped in a dict.
    """

    text: str
    raw_response: dict[str, Any] | None

    def __init__(
        self,
        text: str,
        raw_response: dict[str, Any] | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response
