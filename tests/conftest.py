from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import Path

import pytest

from docmirror.logging_setup import LOGGER_NAME
from docmirror.models import ItemKind, LibraryTarget, RemoteItem
from docmirror.remote_client import PathTooLongError


SITE = "/sites/team"


class FakeSiteClient:
    """In-memory site: maps server-relative file paths to (content, modified)."""

    def __init__(self, server_relative_url: str = SITE) -> None:
        self.server_relative_url = server_relative_url
        self.libraries: list[LibraryTarget] = []
        self.items: dict[str, list[RemoteItem]] = {}
        self.contents: dict[str, str] = {}
        self.failures: dict[str, Exception] = {}
        self.listing_failures: dict[str, Exception] = {}
        self.fetched: list[str] = []

    def add_library(self, title: str, root_folder_name: str | None = None) -> LibraryTarget:
        library = LibraryTarget(title=title, root_folder_name=root_folder_name or title, item_count=0)
        self.libraries.append(library)
        self.items[library.title] = []
        return library

    def add_folder(self, library: LibraryTarget, relative: str) -> RemoteItem:
        path = f"{self.server_relative_url}/{library.root_folder_name}/{relative}"
        item = RemoteItem(ItemKind.FOLDER, path, relative.rsplit("/", 1)[-1])
        self._append(library, item)
        return item

    def add_file(
        self,
        library: LibraryTarget,
        relative: str,
        modified_at: datetime,
        content: str = "remote",
    ) -> RemoteItem:
        path = f"{self.server_relative_url}/{library.root_folder_name}/{relative}"
        item = RemoteItem(ItemKind.FILE, path, relative.rsplit("/", 1)[-1], modified_at)
        self.contents[path] = content
        self._append(library, item)
        return item

    def _append(self, library: LibraryTarget, item: RemoteItem) -> None:
        self.items[library.title].append(item)

    def library(self, title: str) -> LibraryTarget:
        return next(lib for lib in self.list_libraries() if lib.title == title)

    def list_libraries(self) -> list[LibraryTarget]:
        return [
            LibraryTarget(lib.title, lib.root_folder_name, len(self.items[lib.title]))
            for lib in self.libraries
        ]

    def list_items(self, library, progress=None):
        if library.title in self.listing_failures:
            raise self.listing_failures[library.title]
        items = list(self.items[library.title])
        if progress is not None:
            progress(len(items))
        return items

    def fetch_file(self, server_relative_path: str, destination_dir: Path, destination_name: str) -> Path:
        if server_relative_path in self.failures:
            raise self.failures[server_relative_path]
        destination_dir.mkdir(parents=True, exist_ok=True)
        destination = destination_dir / destination_name
        destination.write_text(self.contents[server_relative_path], encoding="utf-8")
        self.fetched.append(server_relative_path)
        return destination

    def fail_too_long(self, item: RemoteItem) -> None:
        self.failures[item.server_relative_path] = PathTooLongError(item.server_relative_path, 10)


@pytest.fixture
def fake_client() -> FakeSiteClient:
    return FakeSiteClient()


def utc(year: int, month: int = 1, day: int = 1, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_docmirror_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
