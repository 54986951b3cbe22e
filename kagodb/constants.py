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

from typing import Any, Callable, Dict, Iterable, Tuple, Union

ItemType = Dict[str, Any]

Predicate = Callable[[ItemType], bool]
Mapper = Callable[[ItemType], ItemType]
Comparator = Callable[[ItemType, ItemType], int]

ConditionType = Union[Predicate, Dict[str, Any]]
ProjectionType = Union[Mapper, Dict[str, Union[bool, int]], Iterable[str]]
SortType = Union[Comparator, Dict[str, int], Iterable[Tuple[str, int]]]


class SortMode:
    """
    Admitted values for the directions in a sort specification,
    e.g. `cursor.sort({"field": SortMode.ASCENDING})`.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    ASCENDING = 1
    DESCENDING = -1
