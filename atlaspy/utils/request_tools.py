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

import httpx

from atlaspy.exceptions import _TimeoutContext

logger = logging.getLogger(__name__)


def log_httpx_request(
    full_url: str,
    redacted_request_headers: dict[str, str],
    encoded_payload: str | None,
    timeout_context: _TimeoutContext,
) -> None:
    """
    Log, at debug level, the POST about to be sent to an action endpoint.

    Args:
        full_url: the action URL, e.g. "https://host/.../endpoint/data/v1/action/find".
        redacted_request_headers: the headers, with secrets already masked:
            they are logged as they are.
        encoded_payload: the JSON body as sent over the wire, if any.
        timeout_context: the timeout information for the request.
    """
    logger.debug(f"Request URL: POST {full_url}")
    logger.debug(f"Request headers: '{redacted_request_headers}'")
    if encoded_payload is not None:
        logger.debug(f"Request payload: '{encoded_payload}'")
    if timeout_context.request_ms:
        logger.debug(f"Request timeout: {timeout_context.request_ms} ms")


def log_httpx_response(response: httpx.Response) -> None:
    """Log, at debug level, the status, headers and body of a response."""
    logger.debug(f"Response status code: {response.status_code}")
    logger.debug(f"Response headers: '{response.headers}'")
    logger.debug(f"Response text: '{response.text}'")


def to_httpx_timeout(timeout_context: _TimeoutContext) -> httpx.Timeout | None:
    # a zero or missing timeout means waiting indefinitely
    if not timeout_context.request_ms:
        return None
    return httpx.Timeout(timeout_context.request_ms / 1000)
