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
The stages a find cursor is made of.

A cursor owns a singly-linked chain of stages: the innermost one reads items
from the collection, each of the others wraps exactly one upstream stage.
Every stage answers `next_object()`, returning the next item or None at the
end of results, and `rewind()`, which brings it back to its pristine state
and rewinds its upstream in turn.

Stages never pull from upstream concurrently and never retry: an exception
raised upstream goes through every stage unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from functools import cmp_to_key
from typing import Any

from typing_extensions import override

from kagodb.constants import ItemType
from kagodb.data.cursors.cursor import (
    AsyncItemReader,
    CursorState,
    ItemReader,
    logger,
)
from kagodb.data.cursors.query_specs import (
    CONDITION_SPEC,
    PROJECTION_SPEC,
    SORT_SPEC,
    parse_condition,
    parse_projection,
    parse_sort,
)
from kagodb.exceptions import InvalidQueryException


def _settle(stage: Any, item: ItemType | None) -> ItemType | None:
    stage.state = CursorState.EXHAUSTED if item is None else CursorState.STARTED
    return item


def _invalid_spec(spec_kind: str, spec: Any) -> InvalidQueryException:
    return InvalidQueryException(
        f"invalid {spec_kind}: {spec!r}",
        spec_kind=spec_kind,
        spec=spec,
    )


class _Stage(ABC):
    state: CursorState

    @abstractmethod
    def next_object(self) -> ItemType | None: ...

    @abstractmethod
    def rewind(self) -> None: ...


class _AsyncStage(ABC):
    state: CursorState

    @abstractmethod
    async def next_object(self) -> ItemType | None: ...

    @abstractmethod
    async def rewind(self) -> None: ...


def _drain(stage: _Stage) -> list[ItemType]:
    """Pull all remaining items from a stage. On error, nothing is returned."""
    items: list[ItemType] = []
    while True:
        item = stage.next_object()
        if item is None:
            return items
        items.append(item)


async def _async_drain(stage: _AsyncStage) -> list[ItemType]:
    items: list[ItemType] = []
    while True:
        item = await stage.next_object()
        if item is None:
            return items
        items.append(item)


class _Source(_Stage):
    """
    Reads items from the collection: the id listing is fetched once, lazily,
    then each pull reads the next id in listing order.
    """

    def __init__(self, collection: ItemReader) -> None:
        self.collection = collection
        self.state = CursorState.IDLE
        self._ids: deque[str] | None = None

    @override
    def next_object(self) -> ItemType | None:
        if self._ids is None:
            logger.debug(f"cursor fetching the index of {self.collection}")
            self._ids = deque(self.collection.index() or [])
        if not self._ids:
            return _settle(self, None)
        return _settle(self, self.collection.read(self._ids.popleft()))

    @override
    def rewind(self) -> None:
        # the next pull re-fetches the listing
        self._ids = None
        self.state = CursorState.IDLE


class _Condition(_Stage):
    def __init__(self, upstream: _Stage, condition: Any) -> None:
        self.upstream = upstream
        self.condition = condition
        self.predicate = parse_condition(condition)
        self.state = CursorState.IDLE

    @override
    def next_object(self) -> ItemType | None:
        if self.predicate is None:
            raise _invalid_spec(CONDITION_SPEC, self.condition)
        while True:
            item = self.upstream.next_object()
            if item is None or self.predicate(item):
                return _settle(self, item)

    @override
    def rewind(self) -> None:
        self.upstream.rewind()
        self.state = CursorState.IDLE


class _Projection(_Stage):
    def __init__(self, upstream: _Stage, projection: Any) -> None:
        self.upstream = upstream
        self.projection = projection
        self.mapper = parse_projection(projection)
        self.state = CursorState.IDLE

    @override
    def next_object(self) -> ItemType | None:
        if self.mapper is None:
            raise _invalid_spec(PROJECTION_SPEC, self.projection)
        item = self.upstream.next_object()
        if item is None:
            return _settle(self, None)
        return _settle(self, self.mapper(item))

    @override
    def rewind(self) -> None:
        self.upstream.rewind()
        self.state = CursorState.IDLE


class _Sort(_Stage):
    """
    Not streaming: the first pull drains the whole upstream and sorts it,
    the following ones are served from the sorted buffer.
    """

    def __init__(self, upstream: _Stage, sort: Any) -> None:
        self.upstream = upstream
        self.sort = sort
        self.comparator = parse_sort(sort)
        self.state = CursorState.IDLE
        self._buffer: deque[ItemType] | None = None

    @override
    def next_object(self) -> ItemType | None:
        if self.comparator is None:
            raise _invalid_spec(SORT_SPEC, self.sort)
        if self._buffer is None:
            items = _drain(self.upstream)
            items.sort(key=cmp_to_key(self.comparator))
            logger.debug(f"cursor sort stage buffered {len(items)} items")
            self._buffer = deque(items)
        if not self._buffer:
            return _settle(self, None)
        return _settle(self, self._buffer.popleft())

    @override
    def rewind(self) -> None:
        self._buffer = None
        self.upstream.rewind()
        self.state = CursorState.IDLE


class _Offset(_Stage):
    def __init__(self, upstream: _Stage, offset: int) -> None:
        self.upstream = upstream
        self.offset = offset
        self.state = CursorState.IDLE
        self._to_discard = offset

    @override
    def next_object(self) -> ItemType | None:
        while self._to_discard > 0:
            if self.upstream.next_object() is None:
                return _settle(self, None)
            self._to_discard -= 1
        return _settle(self, self.upstream.next_object())

    @override
    def rewind(self) -> None:
        self._to_discard = self.offset
        self.upstream.rewind()
        self.state = CursorState.IDLE


class _Limit(_Stage):
    def __init__(self, upstream: _Stage, limit: int) -> None:
        self.upstream = upstream
        self.limit = limit
        self.state = CursorState.IDLE
        self._remaining = limit

    @override
    def next_object(self) -> ItemType | None:
        if self._remaining <= 0:
            return _settle(self, None)
        self._remaining -= 1
        return _settle(self, self.upstream.next_object())

    @override
    def rewind(self) -> None:
        self._remaining = self.limit
        self.upstream.rewind()
        self.state = CursorState.IDLE


class _AsyncSource(_AsyncStage):
    def __init__(self, collection: AsyncItemReader) -> None:
        self.collection = collection
        self.state = CursorState.IDLE
        self._ids: deque[str] | None = None

    @override
    async def next_object(self) -> ItemType | None:
        if self._ids is None:
            logger.debug(f"cursor fetching the index of {self.collection}, async")
            self._ids = deque(await self.collection.index() or [])
        if not self._ids:
            return _settle(self, None)
        return _settle(self, await self.collection.read(self._ids.popleft()))

    @override
    async def rewind(self) -> None:
        self._ids = None
        self.state = CursorState.IDLE


class _AsyncCondition(_AsyncStage):
    def __init__(self, upstream: _AsyncStage, condition: Any) -> None:
        self.upstream = upstream
        self.condition = condition
        self.predicate = parse_condition(condition)
        self.state = CursorState.IDLE

    @override
    async def next_object(self) -> ItemType | None:
        if self.predicate is None:
            raise _invalid_spec(CONDITION_SPEC, self.condition)
        while True:
            item = await self.upstream.next_object()
            if item is None or self.predicate(item):
                return _settle(self, item)

    @override
    async def rewind(self) -> None:
        await self.upstream.rewind()
        self.state = CursorState.IDLE


class _AsyncProjection(_AsyncStage):
    def __init__(self, upstream: _AsyncStage, projection: Any) -> None:
        self.upstream = upstream
        self.projection = projection
        self.mapper = parse_projection(projection)
        self.state = CursorState.IDLE

    @override
    async def next_object(self) -> ItemType | None:
        if self.mapper is None:
            raise _invalid_spec(PROJECTION_SPEC, self.projection)
        item = await self.upstream.next_object()
        if item is None:
            return _settle(self, None)
        return _settle(self, self.mapper(item))

    @override
    async def rewind(self) -> None:
        await self.upstream.rewind()
        self.state = CursorState.IDLE


class _AsyncSort(_AsyncStage):
    def __init__(self, upstream: _AsyncStage, sort: Any) -> None:
        self.upstream = upstream
        self.sort = sort
        self.comparator = parse_sort(sort)
        self.state = CursorState.IDLE
        self._buffer: deque[ItemType] | None = None

    @override
    async def next_object(self) -> ItemType | None:
        if self.comparator is None:
            raise _invalid_spec(SORT_SPEC, self.sort)
        if self._buffer is None:
            items = await _async_drain(self.upstream)
            items.sort(key=cmp_to_key(self.comparator))
            logger.debug(f"cursor sort stage buffered {len(items)} items, async")
            self._buffer = deque(items)
        if not self._buffer:
            return _settle(self, None)
        return _settle(self, self._buffer.popleft())

    @override
    async def rewind(self) -> None:
        self._buffer = None
        await self.upstream.rewind()
        self.state = CursorState.IDLE


class _AsyncOffset(_AsyncStage):
    def __init__(self, upstream: _AsyncStage, offset: int) -> None:
        self.upstream = upstream
        self.offset = offset
        self.state = CursorState.IDLE
        self._to_discard = offset

    @override
    async def next_object(self) -> ItemType | None:
        while self._to_discard > 0:
            if await self.upstream.next_object() is None:
                return _settle(self, None)
            self._to_discard -= 1
        return _settle(self, await self.upstream.next_object())

    @override
    async def rewind(self) -> None:
        self._to_discard = self.offset
        await self.upstream.rewind()
        self.state = CursorState.IDLE


class _AsyncLimit(_AsyncStage):
    def __init__(self, upstream: _AsyncStage, limit: int) -> None:
        self.upstream = upstream
        self.limit = limit
        self.state = CursorState.IDLE
        self._remaining = limit

    @override
    async def next_object(self) -> ItemType | None:
        if self._remaining <= 0:
            return _settle(self, None)
        self._remaining -= 1
        return _settle(self, await self.upstream.next_object())

    @override
    async def rewind(self) -> None:
        self._remaining = self.limit
        await self.upstream.rewind()
        self.state = CursorState.IDLE
