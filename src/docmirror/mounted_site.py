"""A site client over a library tree that is reachable as a directory.

Collaboration sites can be mapped as a WebDAV drive, which exposes each
document library as a top-level folder of the mount. This client serves the
mirror engine from such a mount, reporting items with the server-relative
paths the site itself would use.
"""

from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path
import shutil
import tempfile

from docmirror.config import DEFAULT_MAX_URL_LENGTH
from docmirror.mirror_engine import FORMS_FOLDER_NAME
from docmirror.models import ItemKind, LibraryTarget, RemoteItem
from docmirror.paths import relative_segments
from docmirror.remote_client import FetchError, PathTooLongError, ProgressCallback


def _copy_into_place(source_file: Path, destination_dir: Path, destination_name: str) -> Path:
    # stage next to the target so the final rename stays on one volume
    destination_dir.mkdir(parents=True, exist_ok=True)
    fd, staged = tempfile.mkstemp(prefix=".docmirror-", dir=destination_dir)
    os.close(fd)
    staged_path = Path(staged)
    try:
        shutil.copy2(source_file, staged_path)
        return staged_path.replace(destination_dir / destination_name)
    finally:
        staged_path.unlink(missing_ok=True)


def _is_system_folder(name: str) -> bool:
    return name.startswith("_") or name.startswith(".")


def _prune_forms(root: Path, library_root: Path, dirs: list[str]) -> None:
    if root == library_root:
        dirs[:] = [name for name in dirs if name != FORMS_FOLDER_NAME]


def _count_entries(library_root: Path) -> int:
    count = 0
    for root_str, dirs, files in os.walk(library_root, topdown=True):
        _prune_forms(Path(root_str), library_root, dirs)
        count += len(dirs) + len(files)
    return count


class MountedSiteClient:
    def __init__(
        self,
        site_root: Path,
        server_relative_url: str,
        max_url_length: int = DEFAULT_MAX_URL_LENGTH,
        page_size: int = 500,
    ) -> None:
        self.site_root = site_root
        self.server_relative_url = server_relative_url.rstrip("/") or "/"
        self.max_url_length = max_url_length
        self.page_size = page_size

    def _server_path(self, relative: Path) -> str:
        prefix = "" if self.server_relative_url == "/" else self.server_relative_url
        return f"{prefix}/{relative.as_posix()}"

    def _mounted_path(self, server_relative_path: str) -> Path:
        return self.site_root.joinpath(*relative_segments(server_relative_path, self.server_relative_url))

    def list_libraries(self) -> list[LibraryTarget]:
        if not self.site_root.is_dir():
            raise ValueError(f"Site root does not exist or is not a directory: {self.site_root}")

        libraries: list[LibraryTarget] = []
        for entry in sorted(self.site_root.iterdir()):
            if not entry.is_dir() or _is_system_folder(entry.name):
                continue
            libraries.append(
                LibraryTarget(title=entry.name, root_folder_name=entry.name, item_count=_count_entries(entry))
            )
        return libraries

    def list_items(
        self,
        library: LibraryTarget,
        progress: ProgressCallback | None = None,
    ) -> list[RemoteItem]:
        library_root = self.site_root / library.root_folder_name
        if not library_root.is_dir():
            raise ValueError(f"Library folder does not exist: {library_root}")

        items: list[RemoteItem] = []
        for root_str, dirs, files in os.walk(library_root, topdown=True):
            root = Path(root_str)
            _prune_forms(root, library_root, dirs)
            dirs.sort()
            for dir_name in dirs:
                rel_path = (root / dir_name).relative_to(self.site_root)
                items.append(RemoteItem(ItemKind.FOLDER, self._server_path(rel_path), dir_name))
                self._report_page(items, progress)
            for file_name in sorted(files):
                full_path = root / file_name
                rel_path = full_path.relative_to(self.site_root)
                modified_at = datetime.fromtimestamp(full_path.stat().st_mtime, tz=timezone.utc)
                items.append(RemoteItem(ItemKind.FILE, self._server_path(rel_path), file_name, modified_at))
                self._report_page(items, progress)

        if progress is not None and len(items) % self.page_size:
            progress(len(items))
        return items

    def _report_page(self, items: list[RemoteItem], progress: ProgressCallback | None) -> None:
        if progress is not None and len(items) % self.page_size == 0:
            progress(len(items))

    def fetch_file(self, server_relative_path: str, destination_dir: Path, destination_name: str) -> Path:
        if len(server_relative_path) > self.max_url_length:
            raise PathTooLongError(server_relative_path, self.max_url_length)

        try:
            return _copy_into_place(self._mounted_path(server_relative_path), destination_dir, destination_name)
        except OSError as exc:
            raise FetchError(server_relative_path, str(exc)) from exc
