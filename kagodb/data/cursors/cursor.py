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
from enum import Enum
from typing import Protocol

from kagodb.constants import ItemType

logger = logging.getLogger(__name__)


class CursorState(Enum):
    """
    This enum expresses the possible states for a cursor, and for each of
    the stages making up its pipeline.

    Values:
        IDLE: Nothing has been fetched yet (no index listing, no sort buffer)
        STARTED: Items have been pulled, *can* still yield results
        EXHAUSTED: End of results reached. Keeps returning no items until rewound
        CLOSED: The cursor has been closed and has no pipeline anymore
    """

    # Nothing has been fetched yet (no index listing, no sort buffer)
    IDLE = "idle"
    # Items have been pulled, *can* still yield results
    STARTED = "started"
    # End of results reached. Keeps returning no items until rewound
    EXHAUSTED = "exhausted"
    # The cursor has been closed and has no pipeline anymore
    CLOSED = "closed"


class ItemReader(Protocol):
    """What a cursor needs from its collection: listing ids, reading items."""

    def index(self) -> list[str]: ...

    def read(self, item_id: str) -> ItemType: ...


class AsyncItemReader(Protocol):
    """The async counterpart of ItemReader."""

    async def index(self) -> list[str]: ...

    async def read(self, item_id: str) -> ItemType: ...


def _check_count(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {value!r}.")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}.")
    return value
