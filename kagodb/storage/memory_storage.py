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

from copy import deepcopy

from typing_extensions import override

from kagodb.constants import ItemType
from kagodb.exceptions import ItemNotFoundException
from kagodb.storage.base import StorageBackend


class MemoryStorage(StorageBackend):
    """
    A storage keeping items in a dictionary, in insertion order.

    Items are deep-copied when written and when read, so that callers
    never share mutable state with the store.

    Example:
        >>> storage = MemoryStorage()
        >>> storage.write("foo", {"string": "FOO"})
        >>> storage.index()
        ['foo']
    """

    def __init__(self, items: dict[str, ItemType] | None = None) -> None:
        self._items: dict[str, ItemType] = deepcopy(items) if items else {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({len(self._items)} items)"

    @override
    def index(self) -> list[str]:
        return list(self._items.keys())

    @override
    def read(self, item_id: str) -> ItemType:
        if item_id not in self._items:
            raise ItemNotFoundException(
                f"Item not found: {item_id}", item_id=item_id
            )
        return deepcopy(self._items[item_id])

    @override
    def write(self, item_id: str, item: ItemType) -> None:
        self._items[item_id] = deepcopy(item)

    @override
    def erase(self, item_id: str) -> None:
        if item_id not in self._items:
            raise ItemNotFoundException(
                f"Item not found: {item_id}", item_id=item_id
            )
        del self._items[item_id]

    @override
    def exist(self, item_id: str) -> bool:
        return item_id in self._items

    @override
    async def async_index(self) -> list[str]:
        return self.index()

    @override
    async def async_read(self, item_id: str) -> ItemType:
        return self.read(item_id)

    @override
    async def async_write(self, item_id: str, item: ItemType) -> None:
        self.write(item_id, item)

    @override
    async def async_erase(self, item_id: str) -> None:
        self.erase(item_id)

    @override
    async def async_exist(self, item_id: str) -> bool:
        return self.exist(item_id)
