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
Normalization of the arguments to `find`, `sort` and friends.

Each argument comes in two equivalent forms: a function, used as is, or a
plain structure that is turned into the equivalent function:
  - condition: a predicate `item -> bool`, or an equality mapping
    `{"field": value, ...}` (all fields must match);
  - projection: a mapper `item -> item`, or a whitelist of fields, given
    either as `{"field": 1, ...}` or as an iterable of field names;
  - sort: a comparator `(item, item) -> int`, or a direction mapping
    `{"field": 1 | -1, ...}` (or a sequence of such pairs) whose declared
    order sets the tie-break precedence.

The parsers return None when the argument cannot be normalized: it is up
to the cursor stages to raise `InvalidQueryException` when the normalized
function is actually needed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from kagodb.constants import (
    Comparator,
    ItemType,
    Mapper,
    Predicate,
    SortMode,
)

CONDITION_SPEC = "condition"
PROJECTION_SPEC = "projection"
SORT_SPEC = "sort"

_MISSING = object()


def _is_absent(value: Any) -> bool:
    return value is _MISSING or value is None


def natural_compare(left: Any, right: Any) -> int:
    """
    Compare two field values in their natural order, returning a negative,
    zero or positive integer.

    Strings compare lexicographically and numbers numerically. A missing field
    or a None value sorts before anything else. Values of mutually incomparable
    types are ordered by type name, so that sorting never fails.
    """
    left_absent = _is_absent(left)
    right_absent = _is_absent(right)
    if left_absent or right_absent:
        return int(right_absent) - int(left_absent)
    try:
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    except TypeError:
        left_name = type(left).__name__
        right_name = type(right).__name__
        return (left_name > right_name) - (left_name < right_name)


def parse_condition(condition: Any) -> Predicate | None:
    if callable(condition):
        return condition  # type: ignore[no-any-return]
    if isinstance(condition, Mapping):
        # operator-like structures such as {"price": {"$gt": 1}} are not supported
        if any(isinstance(value, Mapping) for value in condition.values()):
            return None
        criteria = dict(condition)

        def _matches(item: ItemType) -> bool:
            return all(
                field in item and item[field] == value
                for field, value in criteria.items()
            )

        return _matches
    return None


def parse_projection(projection: Any) -> Mapper | None:
    if callable(projection):
        return projection  # type: ignore[no-any-return]
    fields: list[str]
    if isinstance(projection, Mapping):
        fields = []
        for field, flag in projection.items():
            if not isinstance(flag, (bool, int)):
                return None
            if flag:
                fields.append(field)
    elif isinstance(projection, Iterable) and not isinstance(
        projection, (str, bytes)
    ):
        fields = list(projection)
        if not all(isinstance(field, str) for field in fields):
            return None
    else:
        return None

    def _project(item: ItemType) -> ItemType:
        return {field: item[field] for field in fields if field in item}

    return _project


def parse_sort(sort: Any) -> Comparator | None:
    if callable(sort):
        return sort  # type: ignore[no-any-return]
    keys: list[tuple[str, int]]
    if isinstance(sort, Mapping):
        keys = list(sort.items())
    elif isinstance(sort, (list, tuple)):
        keys = []
        for pair in sort:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                return None
            keys.append((pair[0], pair[1]))
    else:
        return None
    for field, direction in keys:
        if not isinstance(field, str) or isinstance(direction, bool):
            return None
        if direction not in (SortMode.ASCENDING, SortMode.DESCENDING):
            return None

    def _compare(left: ItemType, right: ItemType) -> int:
        for field, direction in keys:
            result = natural_compare(
                left.get(field, _MISSING),
                right.get(field, _MISSING),
            )
            # descending negates the comparison, so later keys still break ties
            if result:
                return result * direction
        return 0

    return _compare
