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

# Environment variable names, read only by `api_options_from_environment`
ENV_API_KEY = "KEY"
ENV_ENDPOINT_BASE = "URL_BASE"
ENV_CLUSTER = "CLUSTER"
ENV_DATABASE = "DATABASE"

# Defaults/settings for Data API requests
DATA_API_ACTION_PATH = "action"
DEFAULT_DATA_API_AUTH_HEADER = "Api-Key"
DEFAULT_REQUEST_TIMEOUT_MS = 0  # zero means: no timeout at all

# Fields stamped on inserted documents, stripped when saving back
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"
ID_FIELD = "_id"

# Settings for redacting secrets in string representations and logging
SECRETS_REDACT_ENDING = "..."
SECRETS_REDACT_CHAR = "*"
SECRETS_REDACT_ENDING_LENGTH = 3
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    DEFAULT_DATA_API_AUTH_HEADER,
}
