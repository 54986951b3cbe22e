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

import json
import logging
from types import TracebackType
from typing import Any, Iterable
from urllib.parse import quote

import httpx

from kagodb.exceptions import (
    StorageHttpException,
    UnexpectedStorageResponseException,
    _TimeoutContext,
    to_storage_timeout_exception,
)
from kagodb.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)
from kagodb.utils.request_tools import (
    HttpMethod,
    log_httpx_request,
    log_httpx_response,
    to_httpx_timeout,
)

logger = logging.getLogger(__name__)


class HttpCommander:
    """
    The object actually issuing HTTP requests to a remote collection
    endpoint, in both sync and async flavours.

    It takes care of composing the URL for an item, JSON-encoding payloads,
    logging requests and responses (with secret headers redacted) and
    translating httpx errors into kagodb storage exceptions.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        headers: dict[str, str | None] | None = None,
        redacted_header_names: Iterable[str] | None = None,
        request_timeout_ms: int | None = None,
    ) -> None:
        self.client = httpx.Client()
        self.async_client = httpx.AsyncClient()
        self.endpoint = endpoint.rstrip("/")
        self.headers = headers or {}
        self.redacted_header_names = set(redacted_header_names or [])
        self.request_timeout_ms = request_timeout_ms
        self.upper_full_redacted_header_names = {
            header_name.upper()
            for header_name in (
                self.redacted_header_names | DEFAULT_REDACTED_HEADER_NAMES
            )
        }
        self.full_headers: dict[str, str] = {
            k: v
            for k, v in {
                **{
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                **self.headers,
            }.items()
            if v is not None
        }
        self._loggable_headers = {
            k: v
            if k.upper() not in self.upper_full_redacted_header_names
            else FIXED_SECRET_PLACEHOLDER
            for k, v in self.full_headers.items()
        }

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(endpoint="{self.endpoint}")'

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, HttpCommander):
            return all(
                [
                    self.endpoint == other.endpoint,
                    self.headers == other.headers,
                    self.redacted_header_names == other.redacted_header_names,
                    self.request_timeout_ms == other.request_timeout_ms,
                ]
            )
        else:
            return False

    def close(self) -> None:
        self.client.close()

    async def aclose(self) -> None:
        await self.async_client.aclose()

    def __enter__(self) -> HttpCommander:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> HttpCommander:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.aclose()

    def _compose_request_url(self, item_id: str | None) -> str:
        # a trailing slash addresses the whole collection
        if item_id is None:
            return f"{self.endpoint}/"
        return f"{self.endpoint}/{quote(item_id, safe='')}"

    def _timeout_context(self) -> _TimeoutContext:
        return _TimeoutContext(
            request_ms=self.request_timeout_ms,
            label="request_timeout_ms",
        )

    @staticmethod
    def _encode_payload(payload: dict[str, Any] | None) -> str | None:
        if payload is not None:
            return json.dumps(
                payload,
                allow_nan=False,
                separators=(",", ":"),
                ensure_ascii=False,
            )
        else:
            return None

    @staticmethod
    def _raw_response_to_json(raw_response: httpx.Response) -> Any:
        # an empty body is a legitimate answer for write/erase
        if not raw_response.text.strip():
            return None
        try:
            return json.loads(raw_response.text)
        except ValueError:
            raise UnexpectedStorageResponseException(
                text=f"Unparseable response from {raw_response.request.url}.",
                raw_response={"raw_response": raw_response.text},
            )

    def raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        item_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        request_url = self._compose_request_url(item_id)
        timeout_context = self._timeout_context()
        encoded_payload = self._encode_payload(payload)
        log_httpx_request(
            http_method=http_method,
            full_url=request_url,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_context=timeout_context,
        )

        try:
            raw_response = self.client.request(
                method=http_method,
                url=request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                timeout=to_httpx_timeout(timeout_context),
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_storage_timeout_exception(
                timeout_exc, timeout_context=timeout_context
            )

        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            raise StorageHttpException.from_httpx_error(http_exc)
        log_httpx_response(response=raw_response)
        return raw_response

    async def async_raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        item_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> httpx.Response:
        request_url = self._compose_request_url(item_id)
        timeout_context = self._timeout_context()
        encoded_payload = self._encode_payload(payload)
        log_httpx_request(
            http_method=http_method,
            full_url=request_url,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_context=timeout_context,
        )

        try:
            raw_response = await self.async_client.request(
                method=http_method,
                url=request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                timeout=to_httpx_timeout(timeout_context),
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_storage_timeout_exception(
                timeout_exc, timeout_context=timeout_context
            )

        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            raise StorageHttpException.from_httpx_error(http_exc)
        log_httpx_response(response=raw_response)
        return raw_response

    def request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        item_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        raw_response = self.raw_request(
            http_method=http_method,
            item_id=item_id,
            payload=payload,
        )
        return self._raw_response_to_json(raw_response)

    async def async_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        item_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        raw_response = await self.async_raw_request(
            http_method=http_method,
            item_id=item_id,
            payload=payload,
        )
        return self._raw_response_to_json(raw_response)
