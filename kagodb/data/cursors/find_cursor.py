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

from inspect import iscoroutinefunction
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from kagodb.constants import ConditionType, ItemType, ProjectionType, SortType
from kagodb.data.cursors.cursor import CursorState, _check_count
from kagodb.data.cursors.stages import (
    _AsyncCondition,
    _AsyncLimit,
    _AsyncOffset,
    _AsyncProjection,
    _AsyncSort,
    _AsyncSource,
    _AsyncStage,
    _Condition,
    _drain,
    _async_drain,
    _Limit,
    _Offset,
    _Projection,
    _Sort,
    _Source,
    _Stage,
)
from kagodb.exceptions import CursorException

if TYPE_CHECKING:
    from kagodb.data.collection import AsyncCollection, Collection


class FindCursor:
    """
    A synchronous cursor over items, as returned by a `find` invocation on
    a Collection. A cursor can be iterated over, materialized into a list,
    counted, and refined with sort, offset and limit.

    The cursor is lazy: nothing is read from the storage until items are
    requested. Internally it is a chain of stages: reading from the collection,
    then filtering by the condition and applying the projection (both set
    by `find`), then whatever `sort`, `offset` and `limit` stages have been
    added, in the order they were added. Hence
    `find().sort(s).limit(3)` is "the first three after sorting", while
    `find().limit(3).sort(s)` is "the first three, sorted".

    `sort`, `offset` and `limit` mutate the cursor in-place and return it,
    so that calls can be chained.

    The first successful results of `to_list` and `index` are memoized for
    the lifetime of the cursor; a copy is returned each time. Changing the
    pipeline (or rewinding) afterwards does not refresh these memos.

    Example:
        >>> cursor = collection.find({"decimal": 123}, {"string": 1})
        >>> cursor.sort({"string": SortMode.DESCENDING}).limit(5)
        FindCursor(MemoryStorage(4 items), idle)
        >>> for item in cursor:
        ...     print(item)
        ...
        {'string': 'QUX'}
        {'string': 'FOO'}
    """

    _collection: Collection
    _source: _Source
    _head: _Stage | None
    _cached_list: list[ItemType] | None
    _cached_index: list[str] | None

    def __init__(
        self,
        *,
        collection: Collection,
        condition: ConditionType | None = None,
        projection: ProjectionType | None = None,
    ) -> None:
        self._collection = collection
        self._source = _Source(collection)
        head: _Stage = self._source
        if condition:
            head = _Condition(head, condition)
        if projection:
            head = _Projection(head, projection)
        self._head = head
        self._cached_list = None
        self._cached_index = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._collection.storage!r}, "
            f"{self.state.value})"
        )

    def __iter__(self) -> FindCursor:
        self._ensure_chain()
        return self

    def __next__(self) -> ItemType:
        if self._head is None:
            raise StopIteration
        item = self._head.next_object()
        if item is None:
            raise StopIteration
        return item

    def _ensure_chain(self) -> _Stage:
        if self._head is None:
            raise CursorException(
                text="Cursor has no source.",
                cursor_state=CursorState.CLOSED.value,
            )
        return self._head

    @property
    def state(self) -> CursorState:
        """
        The current state of this cursor, i.e. of the outermost stage of its
        pipeline, or CLOSED if the cursor has been closed.

        Returns:
            a value in `kagodb.cursors.CursorState`.
        """

        if self._head is None:
            return CursorState.CLOSED
        return self._head.state

    @property
    def data_source(self) -> Collection:
        """
        The Collection object that originated this cursor through
        a `find` operation.

        Returns:
            a Collection instance.
        """

        return self._collection

    def close(self) -> None:
        """
        Close the cursor, discarding its pipeline. Any later attempt at pulling
        items from it, or rewinding it, raises a CursorException.
        Memoized results of `to_list` and `index`, if any, stay available.
        """

        self._head = None

    def sort(self, sort: SortType) -> FindCursor:
        """
        Add a sort stage on top of the current pipeline.

        Sorting is not streaming: on first access, everything the current
        pipeline yields is read and sorted in memory.

        Args:
            sort: either a comparator function `(a, b) -> int` or a mapping
                such as `{"price": SortMode.ASCENDING, "stock": SortMode.DESCENDING}`,
                whose keys are compared in their declared order (later keys
                only break ties). A sequence of (field, direction) pairs is
                also accepted.

        Returns:
            this same cursor, for chaining.
        """

        self._head = _Sort(self._ensure_chain(), sort)
        return self

    def offset(self, offset: int) -> FindCursor:
        """
        Add a stage discarding the first `offset` items of the current pipeline.
        An offset beyond the end of results simply yields no items.

        Args:
            offset: a non-negative integer.

        Returns:
            this same cursor, for chaining.
        """

        self._head = _Offset(self._ensure_chain(), _check_count(offset, "offset"))
        return self

    def limit(self, limit: int) -> FindCursor:
        """
        Add a stage returning at most `limit` items of the current pipeline.

        Args:
            limit: a non-negative integer.

        Returns:
            this same cursor, for chaining.
        """

        self._head = _Limit(self._ensure_chain(), _check_count(limit, "limit"))
        return self

    def next_object(self) -> ItemType | None:
        """
        Pull the next item from the cursor.

        Returns:
            the next item, or None if there are no more items.
        """

        return self._ensure_chain().next_object()

    def rewind(self) -> FindCursor:
        """
        Bring the whole pipeline back to its pristine state: the next pull will
        list the collection ids anew and start over from the first item.

        Returns:
            this same cursor, for chaining.
        """

        self._ensure_chain().rewind()
        return self

    def to_list(self) -> list[ItemType]:
        """
        Materialize all items from the cursor into a list.

        The first successful result is memoized: later calls return
        a copy of it without touching the storage. If an error interrupts
        the pull, the cursor is rewound before the error propagates, so that
        a retry starts over from the first item.

        Returns:
            a (new) list of items.
        """

        if self._cached_list is None:
            head = self._ensure_chain()
            try:
                self._cached_list = _drain(head)
            except Exception:
                head.rewind()
                raise
        return list(self._cached_list)

    def index(self) -> list[str]:
        """
        List the ids of all items in the collection, regardless of the
        condition and of any other stage on this cursor.

        The first successful result is memoized for the lifetime of the cursor.

        Returns:
            a (new) list of ids.
        """

        if self._cached_index is None:
            self._cached_index = list(self._collection.index())
        return list(self._cached_index)

    def count(self) -> int:
        """
        Count the items this cursor yields.

        For a bare `find()`, with no stages besides reading the collection,
        this only lists the ids; otherwise all items are materialized
        (and memoized, see `to_list`).

        Returns:
            the number of items.
        """

        if self._head is self._source:
            return len(self.index())
        return len(self.to_list())

    def each(self, callback: Callable[[ItemType | None], bool | None]) -> None:
        """
        Invoke a callback on each item pulled from the cursor, in order, then
        once more with None to signal the end of results.

        The callback can return any value. The return value is generally
        discarded, with the following exception: if the function returns the
        boolean `False`, the iteration stops early (and no final None call
        is made), leaving the cursor partially consumed.

        The cursor is not rewound, neither before nor after.

        Args:
            callback: a function whose only parameter is an item, or None.

        Example:
            >>> collection.find().each(print)
            {'string': 'FOO', 'decimal': 123, 'numeric': 45.67}
            {'string': 'BAR', 'decimal': 111, 'numeric': 45.67}
            None
        """

        head = self._ensure_chain()
        while True:
            item = head.next_object()
            if item is None:
                callback(None)
                return
            if callback(item) is False:
                return


class AsyncFindCursor:
    """
    An asynchronous cursor over items, as returned by a `find` invocation on
    an AsyncCollection.

    This class is the async counterpart of the FindCursor, for use with
    asyncio. Other than the async interface, its behavior is identical: please
    refer to the documentation for `FindCursor` for examples and details.
    """

    _collection: AsyncCollection
    _source: _AsyncSource
    _head: _AsyncStage | None
    _cached_list: list[ItemType] | None
    _cached_index: list[str] | None

    def __init__(
        self,
        *,
        collection: AsyncCollection,
        condition: ConditionType | None = None,
        projection: ProjectionType | None = None,
    ) -> None:
        self._collection = collection
        self._source = _AsyncSource(collection)
        head: _AsyncStage = self._source
        if condition:
            head = _AsyncCondition(head, condition)
        if projection:
            head = _AsyncProjection(head, projection)
        self._head = head
        self._cached_list = None
        self._cached_index = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._collection.storage!r}, "
            f"{self.state.value})"
        )

    def __aiter__(self) -> AsyncFindCursor:
        self._ensure_chain()
        return self

    async def __anext__(self) -> ItemType:
        if self._head is None:
            raise StopAsyncIteration
        item = await self._head.next_object()
        if item is None:
            raise StopAsyncIteration
        return item

    def _ensure_chain(self) -> _AsyncStage:
        if self._head is None:
            raise CursorException(
                text="Cursor has no source.",
                cursor_state=CursorState.CLOSED.value,
            )
        return self._head

    @property
    def state(self) -> CursorState:
        """The current state of this cursor. See `FindCursor.state`."""

        if self._head is None:
            return CursorState.CLOSED
        return self._head.state

    @property
    def data_source(self) -> AsyncCollection:
        """The AsyncCollection object that originated this cursor."""

        return self._collection

    def close(self) -> None:
        self._head = None

    def sort(self, sort: SortType) -> AsyncFindCursor:
        self._head = _AsyncSort(self._ensure_chain(), sort)
        return self

    def offset(self, offset: int) -> AsyncFindCursor:
        self._head = _AsyncOffset(
            self._ensure_chain(), _check_count(offset, "offset")
        )
        return self

    def limit(self, limit: int) -> AsyncFindCursor:
        self._head = _AsyncLimit(self._ensure_chain(), _check_count(limit, "limit"))
        return self

    async def next_object(self) -> ItemType | None:
        return await self._ensure_chain().next_object()

    async def rewind(self) -> AsyncFindCursor:
        await self._ensure_chain().rewind()
        return self

    async def to_list(self) -> list[ItemType]:
        if self._cached_list is None:
            head = self._ensure_chain()
            try:
                self._cached_list = await _async_drain(head)
            except Exception:
                await head.rewind()
                raise
        return list(self._cached_list)

    async def index(self) -> list[str]:
        if self._cached_index is None:
            self._cached_index = list(await self._collection.index())
        return list(self._cached_index)

    async def count(self) -> int:
        if self._head is self._source:
            return len(await self.index())
        return len(await self.to_list())

    async def each(
        self,
        callback: Callable[[ItemType | None], bool | None]
        | Callable[[ItemType | None], Awaitable[bool | None]],
    ) -> None:
        """
        Invoke a callback -- or coroutine -- on each item pulled from the
        cursor, then once more with None to signal the end of results.
        A `False` return value stops the iteration early.
        See `FindCursor.each` for details.
        """

        head = self._ensure_chain()
        is_coro = iscoroutinefunction(callback)
        res: Any
        while True:
            item = await head.next_object()
            if is_coro:
                res = await callback(item)  # type: ignore[misc]
            else:
                res = callback(item)
            if item is None or res is False:
                return
