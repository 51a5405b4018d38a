from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ItemKind(str, Enum):
    FOLDER = "Folder"
    FILE = "File"


@dataclass(frozen=True, slots=True)
class RemoteItem:
    kind: ItemKind
    server_relative_path: str
    leaf_name: str
    modified_at: datetime | None = None

    @property
    def is_folder(self) -> bool:
        return self.kind is ItemKind.FOLDER

    @property
    def is_file(self) -> bool:
        return self.kind is ItemKind.FILE


@dataclass(frozen=True, slots=True)
class LibraryTarget:
    title: str
    root_folder_name: str
    item_count: int = 0


@dataclass(slots=True)
class RunCounters:
    copied: int = 0
    copied_updated: int = 0
    skipped_exists: int = 0
    skipped_path_too_long: int = 0

    @property
    def total(self) -> int:
        return self.copied + self.copied_updated + self.skipped_exists + self.skipped_path_too_long

    def merge(self, other: RunCounters) -> None:
        self.copied += other.copied
        self.copied_updated += other.copied_updated
        self.skipped_exists += other.skipped_exists
        self.skipped_path_too_long += other.skipped_path_too_long
