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

from kagodb.settings.defaults import (
    STORAGE_HTTP,
    STORAGE_JSON,
    STORAGE_MEMORY,
    STORAGE_YAML,
)
from kagodb.storage.base import StorageBackend
from kagodb.storage.file_storage import JSONFileStorage, YAMLFileStorage
from kagodb.storage.http_storage import HTTPStorage
from kagodb.storage.memory_storage import MemoryStorage
from kagodb.utils.storage_options import StorageOptions


def get_storage(
    storage: str,
    storage_options: StorageOptions | None = None,
) -> StorageBackend:
    """
    Build a storage backend from its name and a set of options.

    Args:
        storage: one of "memory", "json", "yaml", "http".
        storage_options: a StorageOptions object. Each backend reads only the
            settings it needs. If omitted, defaults apply (the "http" storage
            always needs an endpoint, though).

    Returns:
        a StorageBackend instance.

    Example:
        >>> get_storage("yaml", StorageOptions(path="./data"))
        YAMLFileStorage(path="./data")
    """

    options = storage_options or StorageOptions()
    if storage == STORAGE_MEMORY:
        return MemoryStorage()
    elif storage == STORAGE_JSON:
        return JSONFileStorage(options.path)
    elif storage == STORAGE_YAML:
        return YAMLFileStorage(options.path)
    elif storage == STORAGE_HTTP:
        if not options.endpoint:
            raise ValueError("The 'http' storage requires an endpoint option.")
        return HTTPStorage(
            options.endpoint,
            headers=options.headers,
            request_timeout_ms=options.request_timeout_ms,
            redacted_header_names=options.redacted_header_names,
        )
    else:
        raise ValueError(f"Unknown storage: '{storage}'.")


__all__ = [
    "HTTPStorage",
    "JSONFileStorage",
    "MemoryStorage",
    "StorageBackend",
    "StorageOptions",
    "YAMLFileStorage",
    "get_storage",
]
