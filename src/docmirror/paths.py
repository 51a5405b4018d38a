from __future__ import annotations

from pathlib import Path, PurePosixPath

from docmirror.models import RemoteItem


def _strip_site_prefix(server_relative_path: str, site_prefix: str) -> str:
    prefix = site_prefix.rstrip("/")
    if prefix and (server_relative_path == prefix or server_relative_path.startswith(prefix + "/")):
        return server_relative_path[len(prefix):]
    return server_relative_path


def relative_segments(server_relative_path: str, site_prefix: str) -> list[str]:
    relative = _strip_site_prefix(server_relative_path, site_prefix)
    segments = [segment for segment in relative.split("/") if segment]
    for segment in segments:
        if segment in {".", ".."}:
            raise ValueError(f"Invalid server-relative path segment '{segment}': {server_relative_path}")
    return segments


def translate_server_path(download_root: Path, server_relative_path: str, site_prefix: str) -> Path:
    return download_root.joinpath(*relative_segments(server_relative_path, site_prefix))


def library_relative_path(server_relative_path: str, site_prefix: str) -> PurePosixPath:
    # first segment is the library root folder
    segments = relative_segments(server_relative_path, site_prefix)
    return PurePosixPath(*segments[1:]) if len(segments) > 1 else PurePosixPath(".")


def split_file_path(download_root: Path, item: RemoteItem, site_prefix: str) -> tuple[Path, str]:
    translated = translate_server_path(download_root, item.server_relative_path, site_prefix)
    return translated.parent, item.leaf_name


def library_local_root(download_root: Path, root_folder_name: str) -> Path:
    return download_root / root_folder_name
