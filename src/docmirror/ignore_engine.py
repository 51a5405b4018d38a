from __future__ import annotations

from pathlib import PurePosixPath
from typing import Iterable

import pathspec

from docmirror.config import JobConfig
from docmirror.models import RemoteItem
from docmirror.paths import library_relative_path


class IgnoreEngine:
    def __init__(self, patterns: Iterable[str]) -> None:
        self._spec = pathspec.PathSpec.from_lines("gitignore", patterns)

    def is_ignored(self, relative_path: PurePosixPath, is_dir: bool = False) -> bool:
        unix_path = relative_path.as_posix()
        if unix_path == ".":
            return False
        candidate = f"{unix_path}/" if is_dir and not unix_path.endswith("/") else unix_path
        return self._spec.match_file(candidate)

    def filter_items(self, items: Iterable[RemoteItem], site_prefix: str) -> tuple[list[RemoteItem], int]:
        kept: list[RemoteItem] = []
        excluded = 0
        for item in items:
            rel_path = library_relative_path(item.server_relative_path, site_prefix)
            if self.is_ignored(rel_path, is_dir=item.is_folder):
                excluded += 1
                continue
            kept.append(item)
        return kept, excluded


def build_ignore_engine(job: JobConfig) -> IgnoreEngine:
    return IgnoreEngine(job.additional_excludes)
