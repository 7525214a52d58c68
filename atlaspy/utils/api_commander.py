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

import json
import logging
from types import TracebackType
from typing import Any, Iterable, Sequence

import httpx

from atlaspy.constants import CallerType
from atlaspy.exceptions import (
    DataAPIFaultyResponseException,
    DataAPIHttpException,
    _TimeoutContext,
    to_dataapi_timeout_exception,
)
from atlaspy.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)
from atlaspy.utils.request_tools import (
    log_httpx_request,
    log_httpx_response,
    to_httpx_timeout,
)
from atlaspy.utils.user_agents import compose_user_agent

logger = logging.getLogger(__name__)


class APICommander:
    client = httpx.Client()

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        callers: Sequence[CallerType] = [],
        redacted_header_names: Iterable[str] | None = None,
    ) -> None:
        self.async_client = httpx.AsyncClient()
        self.api_endpoint = api_endpoint.rstrip("/")
        self.path = path.lstrip("/")
        self.headers = headers
        self.callers = callers
        self.redacted_header_names = set(redacted_header_names or [])
        self.upper_full_redacted_header_names = {
            header_name.upper()
            for header_name in (
                self.redacted_header_names | DEFAULT_REDACTED_HEADER_NAMES
            )
        }

        self.full_headers: dict[str, str] = {
            k: v
            for k, v in {
                **{
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "User-Agent": compose_user_agent(self.callers),
                },
                **self.headers,
            }.items()
            if v is not None
        }
        self._loggable_headers = {
            k: v
            if k.upper() not in self.upper_full_redacted_header_names
            else FIXED_SECRET_PLACEHOLDER
            for k, v in self.full_headers.items()
        }
        self.full_path = ("/".join([self.api_endpoint, self.path])).rstrip("/")

    def __repr__(self) -> str:
        pieces = [
            pc
            for pc in (
                f"api_endpoint={self.api_endpoint}",
                f"path={self.path}",
                f"callers={self.callers}",
            )
            if pc is not None
        ]
        inner_desc = ", ".join(pieces)
        return f"{self.__class__.__name__}({inner_desc})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, APICommander):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.path == other.path,
                    self.headers == other.headers,
                    self.callers == other.callers,
                    self.redacted_header_names == other.redacted_header_names,
                ]
            )
        else:
            return False

    async def __aenter__(self) -> APICommander:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.async_client.aclose()

    def _compose_request_url(self, additional_path: str | None) -> str:
        if additional_path:
            return "/".join([self.full_path.rstrip("/"), additional_path.lstrip("/")])
        else:
            return self.full_path

    def _raw_response_to_json(
        self,
        raw_response: httpx.Response,
        additional_path: str | None,
    ) -> dict[str, Any]:
        # try to process the httpx raw response into a JSON object or throw a failure
        command_desc = additional_path or "(none)"
        try:
            raw_response_json = json.loads(raw_response.text)
        except ValueError:
            # json parsing has failed (e.g., empty body)
            raise DataAPIFaultyResponseException(
                text=f"Unparseable response from API '{command_desc}' command.",
                raw_response={
                    "raw_response": raw_response.text,
                },
            )
        if not isinstance(raw_response_json, dict):
            raise DataAPIFaultyResponseException(
                text=f"Response from API '{command_desc}' command is not an object.",
                raw_response={
                    "raw_response": raw_response_json,
                },
            )
        return raw_response_json

    @staticmethod
    def _encode_payload(payload: dict[str, Any] | None) -> str | None:
        if payload is not None:
            return json.dumps(
                payload,
                allow_nan=False,
                separators=(",", ":"),
                ensure_ascii=False,
            )
        else:
            return None

    def raw_request(
        self,
        *,
        payload: dict[str, Any] | None = None,
        additional_path: str | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> httpx.Response:
        request_url = self._compose_request_url(additional_path)
        _timeout_context = (
            timeout_context
            if timeout_context is not None
            else _TimeoutContext(request_ms=None)
        )
        encoded_payload = self._encode_payload(payload)
        log_httpx_request(
            full_url=request_url,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_context=_timeout_context,
        )
        httpx_timeout_s = to_httpx_timeout(_timeout_context)

        try:
            raw_response = self.client.post(
                request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                timeout=httpx_timeout_s,
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_dataapi_timeout_exception(
                timeout_exc, timeout_context=_timeout_context
            )

        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            logger.warning(
                f"APICommander about to raise from HTTP status {raw_response.status_code}"
            )
            raise DataAPIHttpException.from_httpx_error(http_exc)
        log_httpx_response(response=raw_response)
        return raw_response

    async def async_raw_request(
        self,
        *,
        payload: dict[str, Any] | None = None,
        additional_path: str | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> httpx.Response:
        request_url = self._compose_request_url(additional_path)
        _timeout_context = (
            timeout_context
            if timeout_context is not None
            else _TimeoutContext(request_ms=None)
        )
        encoded_payload = self._encode_payload(payload)
        log_httpx_request(
            full_url=request_url,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_context=_timeout_context,
        )
        httpx_timeout_s = to_httpx_timeout(_timeout_context)

        try:
            raw_response = await self.async_client.post(
                request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                timeout=httpx_timeout_s,
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_dataapi_timeout_exception(
                timeout_exc, timeout_context=_timeout_context
            )

        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            logger.warning(
                f"APICommander about to raise from HTTP status {raw_response.status_code}"
            )
            raise DataAPIHttpException.from_httpx_error(http_exc)
        log_httpx_response(response=raw_response)
        return raw_response

    def request(
        self,
        *,
        payload: dict[str, Any] | None = None,
        additional_path: str | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> dict[str, Any]:
        raw_response = self.raw_request(
            payload=payload,
            additional_path=additional_path,
            timeout_context=timeout_context,
        )
        return self._raw_response_to_json(raw_response, additional_path=additional_path)

    async def async_request(
        self,
        *,
        payload: dict[str, Any] | None = None,
        additional_path: str | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> dict[str, Any]:
        raw_response = await self.async_raw_request(
            payload=payload,
            additional_path=additional_path,
            timeout_context=timeout_context,
        )
        return self._raw_response_to_json(raw_response, additional_path=additional_path)
