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

from dataclasses import dataclass, field, fields
from typing import Iterable

from kagodb.settings.defaults import (
    DEFAULT_DATA_PATH,
    DEFAULT_REQUEST_TIMEOUT_MS,
)


@dataclass
class StorageOptions:
    """
    The settings used to build a storage backend when it is requested
    by name (e.g. `Collection(storage="yaml", storage_options=...)`).

    Each backend only reads the settings that concern it: file storages
    read `path`, the HTTP storage reads `endpoint`, `headers`,
    `request_timeout_ms` and `redacted_header_names`; the memory storage
    reads nothing.

    Attributes:
        path: the directory holding one file per item, for file storages.
            Defaults to "./data".
        endpoint: the base URL of the remote collection, for the HTTP storage,
            e.g. "http://localhost:3000/data/".
        headers: additional HTTP headers sent with each request. Headers with
            a None value are dropped.
        request_timeout_ms: the timeout imposed on a single HTTP request.
            A timeout of zero signifies that no timeout is imposed at all.
            Defaults to 10 s.
        redacted_header_names: header names whose values must never be
            logged, on top of a built-in set (e.g. "Authorization").
    """

    path: str = DEFAULT_DATA_PATH
    endpoint: str | None = None
    headers: dict[str, str | None] = field(default_factory=dict)
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    redacted_header_names: Iterable[str] = field(default_factory=list)

    def with_override(self, **overrides: object) -> StorageOptions:
        """
        Return a copy of these options, with the provided settings replaced.

        Example:
            >>> opts = StorageOptions(endpoint="http://localhost:3000/data")
            >>> opts.with_override(request_timeout_ms=500).request_timeout_ms
            500
        """

        known = {fld.name for fld in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(
                f"Unknown storage option(s): {', '.join(sorted(unknown))}."
            )
        values = {fld.name: getattr(self, fld.name) for fld in fields(self)}
        values.update(overrides)
        return StorageOptions(**values)  # type: ignore[arg-type]
