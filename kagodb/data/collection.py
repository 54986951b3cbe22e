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
from typing import Any

from kagodb.constants import ConditionType, ItemType, ProjectionType
from kagodb.data.cursors.find_cursor import AsyncFindCursor, FindCursor
from kagodb.settings.defaults import STORAGE_MEMORY
from kagodb.storage import StorageBackend, get_storage
from kagodb.utils.storage_options import StorageOptions

logger = logging.getLogger(__name__)


def _resolve_storage(
    storage: StorageBackend | str,
    storage_options: StorageOptions | None,
) -> StorageBackend:
    if isinstance(storage, StorageBackend):
        if storage_options is not None:
            raise ValueError(
                "Parameter `storage_options` cannot be passed along with "
                "a storage backend instance."
            )
        return storage
    return get_storage(storage, storage_options)


class Collection:
    """
    A collection of items, each a JSON-like dictionary stored under a string id.
    Items are persisted through a storage backend; querying happens in the
    client through cursors (see the `find` method).

    This class has a synchronous interface.

    Args:
        storage: either a StorageBackend instance or the name of a storage
            ("memory", "json", "yaml", "http"). Defaults to an in-memory storage.
        storage_options: the settings to build the storage with, when the
            latter is given by name. See `kagodb.storage.StorageOptions`.

    Example:
        >>> from kagodb import Collection, StorageOptions
        >>> coll = Collection("yaml", storage_options=StorageOptions(path="./data"))
        >>> coll.write("foo", {"string": "FOO", "decimal": 123})
        >>> coll.find({"decimal": 123}).to_list()
        [{'string': 'FOO', 'decimal': 123}]
    """

    def __init__(
        self,
        storage: StorageBackend | str = STORAGE_MEMORY,
        *,
        storage_options: StorageOptions | None = None,
    ) -> None:
        self._storage = _resolve_storage(storage, storage_options)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(storage={self._storage!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Collection):
            return self._storage is other._storage
        else:
            return False

    @property
    def storage(self) -> StorageBackend:
        """The storage backend this collection reads from and writes to."""

        return self._storage

    def to_async(self) -> AsyncCollection:
        """
        Create an AsyncCollection sharing the same storage backend as this one.

        Returns:
            an AsyncCollection.

        Example:
            >>> await coll.to_async().count()
            4
        """

        return AsyncCollection(self._storage)

    def index(self) -> list[str]:
        """
        List the ids of all items in the collection.

        Returns:
            a list of string ids, in the order given by the storage.
        """

        logger.info(f"index on {self._storage}")
        ids = self._storage.index()
        logger.info(f"finished index on {self._storage}")
        return ids

    def read(self, item_id: str) -> ItemType:
        """
        Read an item by its id.

        Args:
            item_id: the id of the item.

        Returns:
            the item, a dictionary.

        Raises:
            ItemNotFoundException: if there is no item with the given id.
        """

        logger.info(f"read '{item_id}' on {self._storage}")
        item = self._storage.read(item_id)
        logger.info(f"finished read '{item_id}' on {self._storage}")
        return item

    def write(self, item_id: str, item: ItemType) -> None:
        """
        Write an item under the given id, replacing any previous item there.

        Args:
            item_id: the id of the item.
            item: the item, a dictionary.
        """

        logger.info(f"write '{item_id}' on {self._storage}")
        self._storage.write(item_id, item)
        logger.info(f"finished write '{item_id}' on {self._storage}")

    def erase(self, item_id: str) -> None:
        """
        Remove an item from the collection.

        Args:
            item_id: the id of the item.

        Raises:
            ItemNotFoundException: if there is no item with the given id.
        """

        logger.info(f"erase '{item_id}' on {self._storage}")
        self._storage.erase(item_id)
        logger.info(f"finished erase '{item_id}' on {self._storage}")

    def exist(self, item_id: str) -> bool:
        """
        Check whether an item with the given id is in the collection.

        Args:
            item_id: the id of the item.

        Returns:
            a boolean.
        """

        logger.info(f"exist '{item_id}' on {self._storage}")
        return self._storage.exist(item_id)

    def find(
        self,
        condition: ConditionType | None = None,
        projection: ProjectionType | None = None,
    ) -> FindCursor:
        """
        Find items in the collection matching a condition.

        No storage access happens at this point: the returned cursor reads
        items lazily, once they are requested.

        Args:
            condition: either a predicate function on items or an equality
                mapping such as `{"decimal": 123, "string": "FOO"}`, requiring
                each listed field to equal the given value. An empty mapping
                or None matches all items.
            projection: either a function transforming each item or a
                whitelist of the fields to keep, such as `{"string": 1}` or
                `["string", "decimal"]`. An empty mapping or None keeps
                items whole.

        Returns:
            a FindCursor. Invalid `condition` or `projection` arguments surface
            as `InvalidQueryException` when items are pulled from it.

        Example:
            >>> coll.find({"numeric": 45.67}).sort({"string": 1}).limit(2).to_list()
            [{'string': 'BAR', ...}, {'string': 'FOO', ...}]
        """

        return FindCursor(
            collection=self,
            condition=condition,
            projection=projection,
        )

    def find_one(
        self,
        condition: ConditionType | None = None,
        projection: ProjectionType | None = None,
    ) -> ItemType | None:
        """
        Return the first item matching a condition, in storage order.

        Args:
            condition: as for `find`.
            projection: as for `find`.

        Returns:
            an item, or None if nothing matches.
        """

        logger.info(f"find_one on {self._storage}")
        items = self.find(condition, projection).limit(1).to_list()
        logger.info(f"finished find_one on {self._storage}")
        return items[0] if items else None

    def count(self, condition: ConditionType | None = None) -> int:
        """
        Count the items matching a condition.

        Args:
            condition: as for `find`. If omitted, all items are counted,
                which only requires listing the ids.

        Returns:
            the number of matching items.
        """

        logger.info(f"count on {self._storage}")
        count = self.find(condition).count()
        logger.info(f"finished count on {self._storage}")
        return count


class AsyncCollection:
    """
    A collection of items, each a JSON-like dictionary stored under a string id.

    This class has an asynchronous interface for use with asyncio. Other than
    that, it behaves as `Collection`: please refer to its documentation
    for details.

    Example:
        >>> from kagodb import AsyncCollection
        >>> acoll = AsyncCollection()
        >>> await acoll.write("foo", {"string": "FOO"})
        >>> await acoll.find().to_list()
        [{'string': 'FOO'}]
    """

    def __init__(
        self,
        storage: StorageBackend | str = STORAGE_MEMORY,
        *,
        storage_options: StorageOptions | None = None,
    ) -> None:
        self._storage = _resolve_storage(storage, storage_options)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(storage={self._storage!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncCollection):
            return self._storage is other._storage
        else:
            return False

    @property
    def storage(self) -> StorageBackend:
        """The storage backend this collection reads from and writes to."""

        return self._storage

    def to_sync(self) -> Collection:
        """
        Create a (synchronous) Collection sharing the same storage backend
        as this one.
        """

        return Collection(self._storage)

    async def index(self) -> list[str]:
        logger.info(f"index on {self._storage}, async")
        ids = await self._storage.async_index()
        logger.info(f"finished index on {self._storage}, async")
        return ids

    async def read(self, item_id: str) -> ItemType:
        logger.info(f"read '{item_id}' on {self._storage}, async")
        item = await self._storage.async_read(item_id)
        logger.info(f"finished read '{item_id}' on {self._storage}, async")
        return item

    async def write(self, item_id: str, item: ItemType) -> None:
        logger.info(f"write '{item_id}' on {self._storage}, async")
        await self._storage.async_write(item_id, item)
        logger.info(f"finished write '{item_id}' on {self._storage}, async")

    async def erase(self, item_id: str) -> None:
        logger.info(f"erase '{item_id}' on {self._storage}, async")
        await self._storage.async_erase(item_id)
        logger.info(f"finished erase '{item_id}' on {self._storage}, async")

    async def exist(self, item_id: str) -> bool:
        logger.info(f"exist '{item_id}' on {self._storage}, async")
        return await self._storage.async_exist(item_id)

    def find(
        self,
        condition: ConditionType | None = None,
        projection: ProjectionType | None = None,
    ) -> AsyncFindCursor:
        """
        Find items in the collection matching a condition. See `Collection.find`.

        Returns:
            an AsyncFindCursor.
        """

        return AsyncFindCursor(
            collection=self,
            condition=condition,
            projection=projection,
        )

    async def find_one(
        self,
        condition: ConditionType | None = None,
        projection: ProjectionType | None = None,
    ) -> ItemType | None:
        logger.info(f"find_one on {self._storage}, async")
        items = await self.find(condition, projection).limit(1).to_list()
        logger.info(f"finished find_one on {self._storage}, async")
        return items[0] if items else None

    async def count(self, condition: ConditionType | None = None) -> int:
        logger.info(f"count on {self._storage}, async")
        count = await self.find(condition).count()
        logger.info(f"finished count on {self._storage}, async")
        return count
