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

from typing import Sequence

from atlaspy import __version__
from atlaspy.constants import CallerType

ATLASPY_CALLER: CallerType = (__name__.split(".")[0], __version__)


def _caller_to_string(caller: CallerType) -> str | None:
    caller_name, caller_version = caller
    if not caller_name:
        return None
    if caller_version:
        return f"{caller_name}/{caller_version}"
    return caller_name


def compose_user_agent(callers: Sequence[CallerType]) -> str:
    """
    Build the User-Agent header value: the caller identities, in the order
    given, followed by this library's own (e.g. "my_app/1.0 atlaspy/0.1.0").
    Callers without a name are left out.
    """
    ua_pieces = (_caller_to_string(caller) for caller in [*callers, ATLASPY_CALLER])
    return " ".join(piece for piece in ua_pieces if piece)
