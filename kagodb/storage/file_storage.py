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

import asyncio
import json
import logging
import os
from abc import abstractmethod
from typing import Any

import yaml
from typing_extensions import override

from kagodb.constants import ItemType
from kagodb.exceptions import (
    ItemNotFoundException,
    UnexpectedStorageResponseException,
)
from kagodb.settings.defaults import (
    DEFAULT_DATA_PATH,
    DEFAULT_FILE_ENCODING,
    JSON_FILE_SUFFIX,
    YAML_FILE_SUFFIX,
)
from kagodb.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class _FileStorage(StorageBackend):
    """
    A storage keeping one file per item, named `<path>/<id>.<suffix>`.
    Subclasses only define the suffix and the (de)serialization.

    The directory is created on the first write. Ids cannot contain path
    separators. The async methods run the file I/O on a worker thread.
    """

    suffix: str

    def __init__(self, path: str = DEFAULT_DATA_PATH) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(path="{self.path}")'

    @abstractmethod
    def _dumps(self, item: ItemType) -> str: ...

    @abstractmethod
    def _loads(self, text: str) -> Any: ...

    def _file_path(self, item_id: str) -> str:
        if (
            not item_id
            or os.sep in item_id
            or (os.altsep is not None and os.altsep in item_id)
            or item_id in {".", ".."}
        ):
            raise ValueError(f"Invalid item id for a file storage: '{item_id}'.")
        return os.path.join(self.path, f"{item_id}.{self.suffix}")

    @override
    def index(self) -> list[str]:
        if not os.path.isdir(self.path):
            return []
        ending = f".{self.suffix}"
        return sorted(
            file_name[: -len(ending)]
            for file_name in os.listdir(self.path)
            if file_name.endswith(ending) and len(file_name) > len(ending)
        )

    @override
    def read(self, item_id: str) -> ItemType:
        file_path = self._file_path(item_id)
        try:
            with open(file_path, encoding=DEFAULT_FILE_ENCODING) as item_file:
                text = item_file.read()
        except FileNotFoundError:
            raise ItemNotFoundException(
                f"Item not found: {item_id}", item_id=item_id
            )
        except UnicodeDecodeError as exc:
            raise UnexpectedStorageResponseException(
                text=f"Undecodable file for item '{item_id}': {exc}",
                raw_response=None,
            )
        try:
            item = self._loads(text)
        except ValueError as exc:
            raise UnexpectedStorageResponseException(
                text=f"Unparseable file for item '{item_id}': {exc}",
                raw_response=text,
            )
        if not isinstance(item, dict):
            raise UnexpectedStorageResponseException(
                text=f"File for item '{item_id}' does not hold a mapping.",
                raw_response=item,
            )
        return item

    @override
    def write(self, item_id: str, item: ItemType) -> None:
        file_path = self._file_path(item_id)
        os.makedirs(self.path, exist_ok=True)
        logger.debug(f"writing {file_path}")
        with open(file_path, "w", encoding=DEFAULT_FILE_ENCODING) as item_file:
            item_file.write(self._dumps(item))

    @override
    def erase(self, item_id: str) -> None:
        file_path = self._file_path(item_id)
        try:
            os.remove(file_path)
        except FileNotFoundError:
            raise ItemNotFoundException(
                f"Item not found: {item_id}", item_id=item_id
            )
        logger.debug(f"removed {file_path}")

    @override
    def exist(self, item_id: str) -> bool:
        return os.path.isfile(self._file_path(item_id))

    @override
    async def async_index(self) -> list[str]:
        return await asyncio.to_thread(self.index)

    @override
    async def async_read(self, item_id: str) -> ItemType:
        return await asyncio.to_thread(self.read, item_id)

    @override
    async def async_write(self, item_id: str, item: ItemType) -> None:
        await asyncio.to_thread(self.write, item_id, item)

    @override
    async def async_erase(self, item_id: str) -> None:
        await asyncio.to_thread(self.erase, item_id)

    @override
    async def async_exist(self, item_id: str) -> bool:
        return await asyncio.to_thread(self.exist, item_id)


class JSONFileStorage(_FileStorage):
    """
    A file storage writing each item as a `<id>.json` file.

    Example:
        >>> storage = JSONFileStorage("./data")
        >>> storage.write("foo", {"string": "FOO"})  # writes ./data/foo.json
    """

    suffix = JSON_FILE_SUFFIX

    @override
    def _dumps(self, item: ItemType) -> str:
        return json.dumps(item, ensure_ascii=False, indent=2)

    @override
    def _loads(self, text: str) -> Any:
        return json.loads(text)


class YAMLFileStorage(_FileStorage):
    """
    A file storage writing each item as a `<id>.yaml` file.

    Example:
        >>> storage = YAMLFileStorage("./data")
        >>> storage.write("foo", {"string": "FOO"})  # writes ./data/foo.yaml
    """

    suffix = YAML_FILE_SUFFIX

    @override
    def _dumps(self, item: ItemType) -> str:
        return yaml.safe_dump(item, allow_unicode=True, sort_keys=False)

    @override
    def _loads(self, text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc))
