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
from typing import Any, Iterable

from typing_extensions import override

from kagodb.constants import ItemType
from kagodb.exceptions import (
    ItemNotFoundException,
    StorageHttpException,
    UnexpectedStorageResponseException,
)
from kagodb.settings.defaults import (
    DEFAULT_REQUEST_TIMEOUT_MS,
    HTTP_CONTENT_FIELD,
    HTTP_EXIST_FIELD,
    HTTP_INDEX_FIELD,
    HTTP_METHOD_FIELD,
    HTTP_STATUS_NOT_FOUND,
)
from kagodb.storage.base import StorageBackend
from kagodb.utils.http_commander import HttpCommander
from kagodb.utils.request_tools import HttpMethod

logger = logging.getLogger(__name__)


def _to_not_found(http_exc: StorageHttpException, item_id: str) -> Exception:
    if http_exc.status_code == HTTP_STATUS_NOT_FOUND:
        return ItemNotFoundException(f"Item not found: {item_id}", item_id=item_id)
    return http_exc


def _extract_index(response: Any) -> list[str]:
    if not isinstance(response, dict) or not isinstance(
        response.get(HTTP_INDEX_FIELD), list
    ):
        raise UnexpectedStorageResponseException(
            text=f"Faulty response to 'index' (no '{HTTP_INDEX_FIELD}' list).",
            raw_response=response,
        )
    return [str(item_id) for item_id in response[HTTP_INDEX_FIELD]]


def _extract_item(response: Any, item_id: str) -> ItemType:
    if not isinstance(response, dict):
        raise UnexpectedStorageResponseException(
            text=f"Faulty response to 'read' for item '{item_id}' (not a mapping).",
            raw_response=response,
        )
    return response


def _extract_exist(response: Any) -> bool:
    if not isinstance(response, dict) or HTTP_EXIST_FIELD not in response:
        raise UnexpectedStorageResponseException(
            text=f"Faulty response to 'exist' (no '{HTTP_EXIST_FIELD}' field).",
            raw_response=response,
        )
    return bool(response[HTTP_EXIST_FIELD])


class HTTPStorage(StorageBackend):
    """
    A storage delegating every operation to a remote collection served over
    HTTP. Given an endpoint such as "http://localhost:3000/data/":
      - `read("foo")` is `GET .../data/foo`, answering the item itself;
      - `write`, `erase` and `exist` are `POST .../data/foo` with a JSON body
        `{"method": "write", "content": {...}}`, `{"method": "erase"}` and
        `{"method": "exist"}` respectively (the latter answering
        `{"exist": true|false}`);
      - `index()` is `POST .../data/` with `{"method": "index"}`,
        answering `{"index": [...ids...]}`.

    An HTTP 404 on `read` or `erase` is reported as `ItemNotFoundException`.

    Example:
        >>> storage = HTTPStorage("http://localhost:3000/data/")
        >>> storage.read("foo")
        {'string': 'FOO', 'decimal': 123, 'numeric': 45.67}
    """

    def __init__(
        self,
        endpoint: str,
        *,
        headers: dict[str, str | None] | None = None,
        request_timeout_ms: int | None = DEFAULT_REQUEST_TIMEOUT_MS,
        redacted_header_names: Iterable[str] | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("An endpoint is required for the HTTP storage.")
        self.endpoint = endpoint
        self._commander = HttpCommander(
            endpoint=endpoint,
            headers=headers,
            redacted_header_names=redacted_header_names,
            request_timeout_ms=request_timeout_ms,
        )

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(endpoint="{self.endpoint}")'

    def close(self) -> None:
        self._commander.close()

    async def aclose(self) -> None:
        await self._commander.aclose()

    @override
    def index(self) -> list[str]:
        response = self._commander.request(
            payload={HTTP_METHOD_FIELD: "index"},
        )
        return _extract_index(response)

    @override
    def read(self, item_id: str) -> ItemType:
        try:
            response = self._commander.request(
                http_method=HttpMethod.GET,
                item_id=item_id,
            )
        except StorageHttpException as http_exc:
            raise _to_not_found(http_exc, item_id)
        return _extract_item(response, item_id)

    @override
    def write(self, item_id: str, item: ItemType) -> None:
        self._commander.request(
            item_id=item_id,
            payload={HTTP_METHOD_FIELD: "write", HTTP_CONTENT_FIELD: item},
        )

    @override
    def erase(self, item_id: str) -> None:
        try:
            self._commander.request(
                item_id=item_id,
                payload={HTTP_METHOD_FIELD: "erase"},
            )
        except StorageHttpException as http_exc:
            raise _to_not_found(http_exc, item_id)

    @override
    def exist(self, item_id: str) -> bool:
        response = self._commander.request(
            item_id=item_id,
            payload={HTTP_METHOD_FIELD: "exist"},
        )
        return _extract_exist(response)

    @override
    async def async_index(self) -> list[str]:
        response = await self._commander.async_request(
            payload={HTTP_METHOD_FIELD: "index"},
        )
        return _extract_index(response)

    @override
    async def async_read(self, item_id: str) -> ItemType:
        try:
            response = await self._commander.async_request(
                http_method=HttpMethod.GET,
                item_id=item_id,
            )
        except StorageHttpException as http_exc:
            raise _to_not_found(http_exc, item_id)
        return _extract_item(response, item_id)

    @override
    async def async_write(self, item_id: str, item: ItemType) -> None:
        await self._commander.async_request(
            item_id=item_id,
            payload={HTTP_METHOD_FIELD: "write", HTTP_CONTENT_FIELD: item},
        )

    @override
    async def async_erase(self, item_id: str) -> None:
        try:
            await self._commander.async_request(
                item_id=item_id,
                payload={HTTP_METHOD_FIELD: "erase"},
            )
        except StorageHttpException as http_exc:
            raise _to_not_found(http_exc, item_id)

    @override
    async def async_exist(self, item_id: str) -> bool:
        response = await self._commander.async_request(
            item_id=item_id,
            payload={HTTP_METHOD_FIELD: "exist"},
        )
        return _extract_exist(response)
