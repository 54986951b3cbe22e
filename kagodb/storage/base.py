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

from abc import ABC, abstractmethod

from kagodb.constants import ItemType


class StorageBackend(ABC):
    """
    The contract every storage backend fulfils, in both its sync and its
    async flavour. Items are addressed by a string id, which is not stored
    among the item's own fields.

    Failures are reported by raising a `StorageException`; in particular,
    `read` and `erase` raise `ItemNotFoundException` for a missing id.
    """

    @abstractmethod
    def index(self) -> list[str]:
        """Return the ids of all items currently stored."""
        ...

    @abstractmethod
    def read(self, item_id: str) -> ItemType:
        """Return the item stored under the given id."""
        ...

    @abstractmethod
    def write(self, item_id: str, item: ItemType) -> None:
        """Store an item under the given id, replacing any previous one."""
        ...

    @abstractmethod
    def erase(self, item_id: str) -> None:
        """Remove the item stored under the given id."""
        ...

    @abstractmethod
    def exist(self, item_id: str) -> bool:
        """Whether an item is stored under the given id."""
        ...

    @abstractmethod
    async def async_index(self) -> list[str]: ...

    @abstractmethod
    async def async_read(self, item_id: str) -> ItemType: ...

    @abstractmethod
    async def async_write(self, item_id: str, item: ItemType) -> None: ...

    @abstractmethod
    async def async_erase(self, item_id: str) -> None: ...

    @abstractmethod
    async def async_exist(self, item_id: str) -> bool: ...
