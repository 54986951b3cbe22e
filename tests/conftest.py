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

"""
Main conftest for shared fixtures.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from blockbuster import BlockBuster, blockbuster_ctx

from kagodb import AsyncCollection, Collection
from kagodb.constants import ItemType
from kagodb.exceptions import StorageException
from kagodb.storage import MemoryStorage

SAMPLE_ITEMS: dict[str, ItemType] = {
    "foo": {"string": "FOO", "decimal": 123, "numeric": 45.67},
    "bar": {"string": "BAR", "decimal": 111, "numeric": 45.67},
    "baz": {"string": "BAZ", "decimal": 999, "numeric": 11.11},
    "qux": {"string": "QUX", "decimal": 123, "numeric": 45.67},
}


@pytest.fixture(autouse=True)
def blockbuster() -> Iterator[BlockBuster]:
    with blockbuster_ctx("kagodb") as bb:
        # TODO: follow discussion in https://github.com/encode/httpx/discussions/3456
        bb.functions["os.stat"].can_block_in("httpx/_client.py", "_init_transport")
        yield bb


class CountingStorage(MemoryStorage):
    """
    A memory storage keeping track of the calls it receives, optionally
    failing on the listing of ids or on the read of a given id.
    """

    def __init__(
        self,
        items: dict[str, ItemType] | None = None,
        *,
        failing_id: str | None = None,
        failing_index: bool = False,
    ) -> None:
        super().__init__(items)
        self.failing_id = failing_id
        self.failing_index = failing_index
        self.index_calls = 0
        self.read_calls: list[str] = []

    def index(self) -> list[str]:
        self.index_calls += 1
        if self.failing_index:
            raise StorageException("index failure")
        return super().index()

    def read(self, item_id: str) -> ItemType:
        self.read_calls.append(item_id)
        if item_id == self.failing_id:
            raise StorageException(f"read failure on {item_id}")
        return super().read(item_id)


def strings_of(items: list[dict[str, Any]]) -> list[Any]:
    return [item.get("string") for item in items]


@pytest.fixture
def sample_storage() -> CountingStorage:
    return CountingStorage(SAMPLE_ITEMS)


@pytest.fixture
def sample_collection(sample_storage: CountingStorage) -> Collection:
    return Collection(sample_storage)


@pytest.fixture
def async_sample_collection(sample_storage: CountingStorage) -> AsyncCollection:
    return AsyncCollection(sample_storage)


__all__ = [
    "SAMPLE_ITEMS",
    "CountingStorage",
    "strings_of",
]
