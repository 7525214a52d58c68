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

import datetime
from typing import Any


def convert_to_ejson_date_object(
    date_value: datetime.datetime,
) -> dict[str, str]:
    """
    Express a datetime as an extended-JSON date, i.e. `{"$date": "<ISO-8601>"}`,
    in UTC with millisecond precision (e.g. "2024-05-01T10:20:30.123Z").
    Naive datetimes are taken to be in UTC already.
    """
    if date_value.tzinfo is None:
        utc_value = date_value.replace(tzinfo=datetime.timezone.utc)
    else:
        utc_value = date_value.astimezone(datetime.timezone.utc)
    iso_string = utc_value.replace(tzinfo=None).isoformat(timespec="milliseconds")
    return {"$date": f"{iso_string}Z"}


def convert_ejson_date_object_to_datetime(
    date_object: dict[str, str],
) -> datetime.datetime:
    iso_string = date_object["$date"]
    if iso_string.endswith("Z"):
        iso_string = f"{iso_string[:-1]}+00:00"
    return datetime.datetime.fromisoformat(iso_string)


def is_ejson_objectid_object(value: Any) -> bool:
    return isinstance(value, dict) and len(value) == 1 and "$oid" in value


def convert_to_ejson_objectid_object(objectid_value: Any) -> dict[str, Any]:
    """
    Wrap a document identity into its wire form, `{"$oid": <value>}`.
    An identity already in wire form is returned unchanged.
    """
    if is_ejson_objectid_object(objectid_value):
        return objectid_value  # type: ignore[no-any-return]
    return {"$oid": str(objectid_value)}
