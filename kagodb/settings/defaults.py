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

# Names admitted when a storage backend is requested by name
STORAGE_MEMORY = "memory"
STORAGE_JSON = "json"
STORAGE_YAML = "yaml"
STORAGE_HTTP = "http"

# Defaults/settings for file-based storages
DEFAULT_DATA_PATH = "./data"
JSON_FILE_SUFFIX = "json"
YAML_FILE_SUFFIX = "yaml"
DEFAULT_FILE_ENCODING = "utf-8"

# Defaults/settings for the HTTP storage
DEFAULT_REQUEST_TIMEOUT_MS = 10000
HTTP_METHOD_FIELD = "method"
HTTP_CONTENT_FIELD = "content"
HTTP_INDEX_FIELD = "index"
HTTP_EXIST_FIELD = "exist"
HTTP_STATUS_NOT_FOUND = 404

# Settings for redacting secrets in logging
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    "Authorization",
    "Token",
    "X-Api-Key",
}
