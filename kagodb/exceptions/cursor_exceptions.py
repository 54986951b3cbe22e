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

from kagodb.exceptions.storage_exceptions import KagoDBException


@dataclass
class CursorException(KagoDBException):
    """
    The cursor operation cannot be invoked in the current state of the cursor,
    e.g. pulling items from a cursor that has been closed.

    Attributes:
        text: a text message about the exception.
        cursor_state: a string description of the current state
            of the cursor. See the documentation for CursorState.
    """

    text: str
    cursor_state: str

    def __init__(
        self,
        text: str,
        *,
        cursor_state: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_state = cursor_state


@dataclass
class InvalidQueryException(KagoDBException):
    """
    A condition, projection or sort argument could not be turned into
    a callable. This is raised when the cursor first needs the argument,
    i.e. when items are pulled, not when the cursor is built.

    Attributes:
        text: a text message about the exception.
        spec_kind: one of "condition", "projection", "sort".
        spec: the offending argument, as it was passed.
    """

    text: str
    spec_kind: str
    spec: Any

    def __init__(
        self,
        text: str,
        *,
        spec_kind: str,
        spec: Any,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.spec_kind = spec_kind
        self.spec = spec
