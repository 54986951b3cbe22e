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

from typing import Any

import pytest

from kagodb import Collection
from kagodb.constants import SortMode
from kagodb.cursors import CursorState, FindCursor
from kagodb.exceptions import (
    CursorException,
    InvalidQueryException,
    StorageException,
)

from ..conftest import SAMPLE_ITEMS, CountingStorage, strings_of


class TestFindCursorsSync:
    @pytest.mark.describe("test of counting with a bare find cursor, sync")
    def test_cursor_count_bare_sync(
        self,
        sample_collection: Collection,
        sample_storage: CountingStorage,
    ) -> None:
        cursor = sample_collection.find()
        assert sample_storage.index_calls == 0
        assert cursor.count() == len(SAMPLE_ITEMS)
        assert sample_storage.read_calls == []
        assert sample_collection.count() == len(SAMPLE_ITEMS)

    @pytest.mark.describe("test of counting through a pipeline, sync")
    def test_cursor_count_pipeline_sync(
        self,
        sample_collection: Collection,
        sample_storage: CountingStorage,
    ) -> None:
        assert sample_collection.find({"numeric": 45.67}).count() == 3
        assert len(sample_storage.read_calls) == 4
        sorted_cursor = sample_collection.find().sort({"string": SortMode.ASCENDING})
        assert sorted_cursor.count() == 4
        assert sample_collection.count({"decimal": 123}) == 2
        assert sample_collection.count({"decimal": -1}) == 0

    @pytest.mark.describe("test of to_list and iteration, sync")
    def test_cursor_to_list_iteration_sync(self, sample_collection: Collection) -> None:
        assert strings_of(sample_collection.find().to_list()) == [
            "FOO",
            "BAR",
            "BAZ",
            "QUX",
        ]
        assert strings_of(list(sample_collection.find())) == [
            "FOO",
            "BAR",
            "BAZ",
            "QUX",
        ]
        empty_coll = Collection()
        assert empty_coll.find().to_list() == []
        assert empty_coll.find().count() == 0

    @pytest.mark.describe("test of offset and limit, sync")
    def test_cursor_offset_limit_sync(self, sample_collection: Collection) -> None:
        assert strings_of(sample_collection.find().offset(2).to_list()) == [
            "BAZ",
            "QUX",
        ]
        assert strings_of(sample_collection.find().limit(2).to_list()) == [
            "FOO",
            "BAR",
        ]
        assert strings_of(sample_collection.find().offset(1).limit(2).to_list()) == [
            "BAR",
            "BAZ",
        ]
        assert strings_of(sample_collection.find().limit(2).offset(1).to_list()) == [
            "BAR",
        ]
        assert sample_collection.find().limit(0).to_list() == []
        assert sample_collection.find().offset(10).to_list() == []
        assert sample_collection.find().offset(0).count() == 4

    @pytest.mark.describe("test of offset and limit argument checks, sync")
    def test_cursor_offset_limit_checks_sync(
        self, sample_collection: Collection
    ) -> None:
        with pytest.raises(ValueError):
            sample_collection.find().offset(-1)
        with pytest.raises(ValueError):
            sample_collection.find().limit(-3)
        with pytest.raises(TypeError):
            sample_collection.find().limit(1.5)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            sample_collection.find().limit(True)

    @pytest.mark.describe("test of single-key sorting, sync")
    def test_cursor_sort_single_key_sync(self, sample_collection: Collection) -> None:
        asc = sample_collection.find().sort({"string": SortMode.ASCENDING}).to_list()
        assert strings_of(asc) == ["BAR", "BAZ", "FOO", "QUX"]
        desc = sample_collection.find().sort({"string": SortMode.DESCENDING}).to_list()
        assert strings_of(desc) == ["QUX", "FOO", "BAZ", "BAR"]
        # ties keep storage order
        by_decimal = sample_collection.find().sort({"decimal": 1}).to_list()
        assert strings_of(by_decimal) == ["BAR", "FOO", "QUX", "BAZ"]

    @pytest.mark.describe("test of multi-key sorting, sync")
    def test_cursor_sort_multi_key_sync(self, sample_collection: Collection) -> None:
        asc = (
            sample_collection.find()
            .sort({"numeric": 1, "decimal": 1, "string": 1})
            .to_list()
        )
        assert strings_of(asc) == ["BAZ", "BAR", "FOO", "QUX"]
        desc = (
            sample_collection.find()
            .sort({"numeric": -1, "decimal": -1, "string": -1})
            .to_list()
        )
        assert strings_of(desc) == ["QUX", "FOO", "BAR", "BAZ"]
        pairs = (
            sample_collection.find().sort([("decimal", -1), ("string", 1)]).to_list()
        )
        assert strings_of(pairs) == ["BAZ", "FOO", "QUX", "BAR"]

    @pytest.mark.describe("test of sorting with functions and empty specs, sync")
    def test_cursor_sort_others_sync(self, sample_collection: Collection) -> None:
        def _by_decimal_desc(left: dict[str, Any], right: dict[str, Any]) -> int:
            return int(right["decimal"] - left["decimal"])

        by_func = sample_collection.find().sort(_by_decimal_desc).to_list()
        assert strings_of(by_func) == ["BAZ", "FOO", "QUX", "BAR"]
        unsorted = sample_collection.find().sort({}).to_list()
        assert strings_of(unsorted) == ["FOO", "BAR", "BAZ", "QUX"]

    @pytest.mark.describe("test of stage ordering, sync")
    def test_cursor_stage_ordering_sync(self, sample_collection: Collection) -> None:
        sort_then_limit = (
            sample_collection.find().sort({"string": -1}).limit(2).to_list()
        )
        assert strings_of(sort_then_limit) == ["QUX", "FOO"]
        limit_then_sort = (
            sample_collection.find().limit(2).sort({"string": -1}).to_list()
        )
        assert strings_of(limit_then_sort) == ["FOO", "BAR"]

    @pytest.mark.describe("test of conditions, sync")
    def test_cursor_conditions_sync(self, sample_collection: Collection) -> None:
        two_keys = (
            sample_collection.find({"decimal": 123, "numeric": 45.67})
            .sort({"string": 1})
            .to_list()
        )
        assert strings_of(two_keys) == ["FOO", "QUX"]
        by_func = sample_collection.find(lambda item: item["decimal"] > 120).to_list()
        assert strings_of(by_func) == ["FOO", "BAZ", "QUX"]
        assert sample_collection.find({}).count() == 4
        assert sample_collection.find({"missing_field": 1}).to_list() == []

    @pytest.mark.describe("test of projections, sync")
    def test_cursor_projections_sync(self, sample_collection: Collection) -> None:
        items = sample_collection.find({}, {"string": 1}).to_list()
        assert items == [
            {"string": "FOO"},
            {"string": "BAR"},
            {"string": "BAZ"},
            {"string": "QUX"},
        ]
        items2 = (
            sample_collection.find({"string": "BAZ"}, {"decimal": 1, "numeric": 1})
        ).to_list()
        assert items2 == [{"decimal": 999, "numeric": 11.11}]
        items3 = sample_collection.find(None, ["numeric", "nothing"]).limit(1).to_list()
        assert items3 == [{"numeric": 45.67}]
        items4 = sample_collection.find(None, {"string": 1, "decimal": 0}).to_list()
        assert all(set(item.keys()) == {"string"} for item in items4)
        items5 = sample_collection.find(
            {"string": "BAR"}, lambda item: {"s": item["string"].lower()}
        ).to_list()
        assert items5 == [{"s": "bar"}]

    @pytest.mark.describe("test of invalid query arguments, sync")
    def test_cursor_invalid_specs_sync(self, sample_collection: Collection) -> None:
        # no failure until items are pulled
        cursor = sample_collection.find({"decimal": {"$gt": 100}})
        with pytest.raises(InvalidQueryException) as exc:
            cursor.to_list()
        assert exc.value.spec_kind == "condition"
        with pytest.raises(InvalidQueryException):
            cursor.next_object()

        with pytest.raises(InvalidQueryException) as exc:
            sample_collection.find(None, 42).to_list()  # type: ignore[arg-type]
        assert exc.value.spec_kind == "projection"

        for bad_sort in ["string", {"string": 2}, {"string": True}, [("string",)]]:
            with pytest.raises(InvalidQueryException) as exc:
                sample_collection.find().sort(bad_sort).to_list()  # type: ignore[arg-type]
            assert exc.value.spec_kind == "sort"

    @pytest.mark.describe("test of next_object and cursor states, sync")
    def test_cursor_next_object_states_sync(
        self, sample_collection: Collection
    ) -> None:
        cursor = sample_collection.find().limit(2)
        assert cursor.state == CursorState.IDLE
        first = cursor.next_object()
        assert first is not None
        assert first["string"] == "FOO"
        assert cursor.state == CursorState.STARTED
        assert cursor.next_object() is not None
        assert cursor.next_object() is None
        assert cursor.state == CursorState.EXHAUSTED
        assert cursor.next_object() is None
        assert cursor.state == CursorState.EXHAUSTED

    @pytest.mark.describe("test of rewinding, sync")
    def test_cursor_rewind_sync(
        self,
        sample_collection: Collection,
        sample_storage: CountingStorage,
    ) -> None:
        cursor = sample_collection.find().sort({"string": 1}).offset(1).limit(2)
        assert strings_of(list(cursor)) == ["BAZ", "FOO"]
        assert sample_storage.index_calls == 1
        assert cursor.rewind() is cursor
        assert cursor.state == CursorState.IDLE
        assert strings_of(list(cursor)) == ["BAZ", "FOO"]
        assert sample_storage.index_calls == 2

        # the index is fetched anew on rewind
        sample_collection.write("aaa", {"string": "AAA"})
        cursor.rewind()
        assert strings_of(list(cursor)) == ["BAR", "BAZ"]

    @pytest.mark.describe("test of memoized results, sync")
    def test_cursor_memoization_sync(
        self,
        sample_collection: Collection,
        sample_storage: CountingStorage,
    ) -> None:
        cursor = sample_collection.find()
        list1 = cursor.to_list()
        list1.clear()
        list2 = cursor.to_list()
        assert len(list2) == 4
        assert len(sample_storage.read_calls) == 4

        # rewinding and extending the pipeline keep the memo
        cursor.rewind().limit(1)
        assert len(cursor.to_list()) == 4
        assert cursor.count() == 4
        assert len(cursor.next_object() or {}) > 0

        ids = cursor.index()
        ids.append("zzz")
        assert cursor.index() == ["foo", "bar", "baz", "qux"]

    @pytest.mark.describe("test of index on a filtered cursor, sync")
    def test_cursor_index_sync(self, sample_collection: Collection) -> None:
        cursor = sample_collection.find({"string": "BAZ"}).limit(1)
        assert cursor.index() == ["foo", "bar", "baz", "qux"]

    @pytest.mark.describe("test of each, sync")
    def test_cursor_each_sync(self, sample_collection: Collection) -> None:
        received: list[Any] = []
        sample_collection.find().sort({"string": 1}).each(received.append)
        assert strings_of(received[:-1]) == ["BAR", "BAZ", "FOO", "QUX"]
        assert received[-1] is None

        stopped: list[Any] = []

        def _take_two(item: dict[str, Any] | None) -> bool:
            stopped.append(item)
            return len(stopped) < 2

        cursor = sample_collection.find()
        cursor.each(_take_two)
        assert strings_of(stopped) == ["FOO", "BAR"]
        assert cursor.state == CursorState.STARTED
        remaining = cursor.next_object()
        assert remaining is not None
        assert remaining["string"] == "BAZ"

    @pytest.mark.describe("test of closing a cursor, sync")
    def test_cursor_close_sync(self, sample_collection: Collection) -> None:
        cursor = sample_collection.find()
        cursor.close()
        assert cursor.state == CursorState.CLOSED
        with pytest.raises(CursorException):
            cursor.next_object()
        with pytest.raises(CursorException):
            cursor.to_list()
        with pytest.raises(CursorException):
            cursor.rewind()
        with pytest.raises(CursorException):
            cursor.sort({"string": 1})
        with pytest.raises(CursorException):
            cursor.offset(1)
        with pytest.raises(CursorException):
            cursor.limit(1)
        with pytest.raises(CursorException):
            iter(cursor)

        cursor2 = sample_collection.find()
        assert len(cursor2.to_list()) == 4
        cursor2.close()
        assert len(cursor2.to_list()) == 4

    @pytest.mark.describe("test of storage errors going through a cursor, sync")
    def test_cursor_storage_errors_sync(self) -> None:
        storage = CountingStorage(SAMPLE_ITEMS, failing_id="baz")
        collection = Collection(storage)
        with pytest.raises(StorageException):
            collection.find().to_list()
        with pytest.raises(StorageException):
            collection.find({"decimal": 123}).sort({"string": 1}).next_object()

        cursor = collection.find()
        assert cursor.next_object() is not None
        assert cursor.next_object() is not None
        with pytest.raises(StorageException):
            cursor.next_object()

        assert storage.read_calls.count("qux") == 0
        assert strings_of(collection.find().limit(2).to_list()) == ["FOO", "BAR"]

    @pytest.mark.describe("test of index failures going through a cursor, sync")
    def test_cursor_index_errors_sync(self) -> None:
        storage = CountingStorage(SAMPLE_ITEMS, failing_index=True)
        collection = Collection(storage)
        with pytest.raises(StorageException):
            collection.find().count()
        with pytest.raises(StorageException):
            collection.find({"decimal": 123}).to_list()
        with pytest.raises(StorageException):
            collection.find().sort({"string": 1}).next_object()
        with pytest.raises(StorageException):
            collection.count({"decimal": 123})
        assert storage.read_calls == []

        cursor = collection.find().offset(1)
        with pytest.raises(StorageException):
            cursor.count()
        storage.failing_index = False
        assert cursor.count() == 3

    @pytest.mark.describe("test of retrying to_list after a storage error, sync")
    def test_cursor_to_list_retry_sync(self) -> None:
        storage = CountingStorage(SAMPLE_ITEMS, failing_id="baz")
        collection = Collection(storage)
        cursor = collection.find()
        with pytest.raises(StorageException):
            cursor.to_list()
        assert cursor.state == CursorState.IDLE
        storage.failing_id = None
        assert strings_of(cursor.to_list()) == ["FOO", "BAR", "BAZ", "QUX"]
        assert cursor.count() == 4

        storage.failing_id = "bar"
        sorted_cursor = collection.find().sort({"string": 1})
        with pytest.raises(StorageException):
            sorted_cursor.to_list()
        storage.failing_id = None
        assert strings_of(sorted_cursor.to_list()) == ["BAR", "BAZ", "FOO", "QUX"]
        assert sorted_cursor.count() == 4

    @pytest.mark.describe("test of cursor accessors, sync")
    def test_cursor_accessors_sync(self, sample_collection: Collection) -> None:
        cursor = sample_collection.find()
        assert isinstance(cursor, FindCursor)
        assert cursor.data_source is sample_collection
        assert "idle" in repr(cursor)
        assert cursor.sort({"string": 1}) is cursor
        assert cursor.offset(0) is cursor
        assert cursor.limit(10) is cursor
