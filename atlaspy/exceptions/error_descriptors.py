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


@dataclass
class DataAPIErrorDescriptor:
    """
    An object representing the error returned by the Data API alongside
    an HTTP 4xx/5xx response, typically with a text message, an error code
    and a documentation link.

    Attributes:
        message: the text found in the API error's "error" field.
        error_code: a string code as found in the API error's "error_code" field.
        link: the URL found in the API error's "link" field.
        attributes: a dict with any further key-value pairs returned by the API.
    """

    message: str | None
    error_code: str | None
    link: str | None
    attributes: dict[str, Any]

    _known_dict_fields = {
        "error",
        "error_code",
        "link",
    }

    def __init__(self, error_dict: dict[str, Any] | str) -> None:
        if isinstance(error_dict, str):
            self.message = error_dict
            self.error_code = None
            self.link = None
            self.attributes = {}
        else:
            self.message = error_dict.get("error")
            self.error_code = error_dict.get("error_code")
            self.link = error_dict.get("link")
            self.attributes = {
                k: v for k, v in error_dict.items() if k not in self._known_dict_fields
            }

    def __repr__(self) -> str:
        pieces = [
            f"message={self.message.__repr__()}" if self.message else None,
            f"error_code={self.error_code.__repr__()}" if self.error_code else None,
            f"link={self.link.__repr__()}" if self.link else None,
            f"attributes={self.attributes.__repr__()}" if self.attributes else None,
        ]
        return f"{self.__class__.__name__}({', '.join(pc for pc in pieces if pc)})"

    def __str__(self) -> str:
        return self.summary()

    def summary(self) -> str:
        """
        Determine a string succinct description of this descriptor.

        The precise format of this summary is determined by which fields are set.
        """
        if self.error_code:
            if self.message:
                return f"{self.message} ({self.error_code})"
            else:
                return f"{self.error_code}"
        else:
            if self.message:
                return f"{self.message}"
            else:
                return ""
