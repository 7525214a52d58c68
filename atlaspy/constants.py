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

from typing import Any, Dict, Iterable, Optional, Tuple, Union

DocumentType = Dict[str, Any]
FilterType = Dict[str, Any]
SortType = Dict[str, Any]
UpdateType = Dict[str, Any]
ProjectionType = Union[str, Iterable[str], Dict[str, Any]]
CallerType = Tuple[Optional[str], Optional[str]]


def normalize_projection(
    projection: ProjectionType | None,
) -> dict[str, Any]:
    """
    Coerce the admissible forms of a projection into an inclusion mapping.

    A space-separated string of field names (e.g. `"name age"`) and an
    iterable of field names both become `{"name": 1, "age": 1}`;
    a dictionary is returned as it is; None becomes an empty projection.
    """
    if projection is None:
        return {}
    if isinstance(projection, dict):
        # already a dictionary
        return projection
    if isinstance(projection, str):
        return {field: 1 for field in projection.split()}
    # an iterable over strings: coerce to allow-list projection
    return {field: 1 for field in projection}


class SortMode:
    """
    Admitted values for the directions in a sort specification,
    e.g. `my_collection.find({}).sort({"field": SortMode.ASCENDING})`.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    ASCENDING = 1
    DESCENDING = -1
