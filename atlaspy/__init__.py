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

__version__: str = "0.1.0"


import atlaspy.constants  # noqa: E402
from atlaspy.client import DataAPIClient  # noqa: E402
from atlaspy.data.collection import AsyncCollection, Collection  # noqa: E402
from atlaspy.data.document import AsyncSavableDocument, SavableDocument  # noqa: E402
from atlaspy.utils.api_options import APIOptions  # noqa: E402

__all__ = [
    "APIOptions",
    "AsyncCollection",
    "AsyncSavableDocument",
    "Collection",
    "DataAPIClient",
    "SavableDocument",
    "__version__",
]


__pdoc__ = {
    "settings": False,
    "utils": False,
}
