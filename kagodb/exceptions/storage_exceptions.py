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

from dataclasses import dataclass
from typing import Any

import httpx


class KagoDBException(Exception):
    """
    Any exception raised by kagodb itself, as opposed to (for instance)
    a TypeError coming from a user-supplied predicate or comparator.
    """

    pass


class StorageException(KagoDBException):
    """
    A failure surfaced by a storage backend while serving `index`, `read`,
    `write`, `erase` or `exist`, such as:
      - an item is found not to exist when reading it,
      - a remote storage returns an HTTP error,
      - a storage file cannot be parsed.
    Cursors propagate these exceptions unchanged, without any retry.
    """

    pass


@dataclass
class ItemNotFoundException(StorageException):
    """
    The requested item does not exist in the storage.

    Attributes:
        text: a text message about the exception.
        item_id: the id that was looked up.
    """

    text: str
    item_id: str

    def __init__(
        self,
        text: str,
        *,
        item_id: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.item_id = item_id


@dataclass
class StorageHttpException(StorageException, httpx.HTTPStatusError):
    """
    A request to a remote storage resulted in an HTTP 4xx or 5xx response.

    This is still a (subclass of) `httpx.HTTPStatusError`, so the original
    request and response are available for inspection.

    Attributes:
        text: a text message about the exception.
        status_code: the HTTP status code of the response, if any.
    """

    text: str | None
    status_code: int | None

    def __init__(
        self,
        text: str | None,
        *,
        httpx_error: httpx.HTTPStatusError,
        status_code: int | None,
    ) -> None:
        StorageException.__init__(self, text)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.status_code = status_code

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
        **kwargs: Any,
    ) -> StorageHttpException:
        """Parse a httpx status error into this exception."""

        status_code: int | None
        body: str
        # the attempt to inspect the response cannot afford failure.
        try:
            status_code = httpx_error.response.status_code
            body = httpx_error.response.text
        except Exception:
            status_code = None
            body = ""
        if body:
            text = f"{str(httpx_error)} {body}"
        else:
            text = str(httpx_error)

        return cls(
            text=text,
            httpx_error=httpx_error,
            status_code=status_code,
            **kwargs,
        )


@dataclass
class StorageTimeoutException(StorageException):
    """
    A request to a remote storage timed out.

    Attributes:
        text: a textual description of the error
        timeout_type: this denotes the phase of the HTTP request when the event
            occurred ("connect", "read", "write", "pool") or "generic" if there is
            not a specific phase associated to the exception.
        endpoint: the URL that the request was targeting, if known.
    """

    text: str
    timeout_type: str
    endpoint: str | None

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.timeout_type = timeout_type
        self.endpoint = endpoint


@dataclass
class UnexpectedStorageResponseException(StorageException):
    """
    The storage returned something that cannot be interpreted, such as
    a non-JSON HTTP body, a response without the expected fields, or
    a file whose contents are not a mapping.

    Attributes:
        text: a text message about the exception.
        raw_response: whatever could be salvaged from the response.
    """

    text: str
    raw_response: Any

    def __init__(
        self,
        text: str,
        raw_response: Any,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response
