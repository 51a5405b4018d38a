"""Contract between the mirror engine and whatever serves the site's libraries.

The engine never talks to the collaboration platform directly. It needs three
things from a client: the site's server-relative prefix, the library list and
each library's flat item listing, and a way to fetch one file into a local
directory. Clients report the platform's URL length limit as
``PathTooLongError`` so the engine can treat it as a skip rather than a fault.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Protocol

from docmirror.models import LibraryTarget, RemoteItem


URL_TOO_LONG_SIGNATURE = "length of the URL for this request exceeds the configured maxUrlLength value"

ProgressCallback = Callable[[int], None]


class FetchError(Exception):
    """A file could not be transferred from the site."""

    def __init__(self, server_relative_path: str, detail: str) -> None:
        super().__init__(f"Failed to fetch {server_relative_path}: {detail}")
        self.server_relative_path = server_relative_path
        self.detail = detail


class PathTooLongError(FetchError):
    def __init__(self, server_relative_path: str, max_url_length: int) -> None:
        super().__init__(
            server_relative_path,
            f"The {URL_TOO_LONG_SIGNATURE} ({len(server_relative_path)} > {max_url_length})",
        )
        self.max_url_length = max_url_length


def is_path_too_long(exc: BaseException) -> bool:
    if isinstance(exc, PathTooLongError):
        return True
    return URL_TOO_LONG_SIGNATURE in str(exc)


class RemoteSiteClient(Protocol):
    server_relative_url: str

    def list_libraries(self) -> list[LibraryTarget]:
        ...

    def list_items(
        self,
        library: LibraryTarget,
        progress: ProgressCallback | None = None,
    ) -> list[RemoteItem]:
        ...

    def fetch_file(self, server_relative_path: str, destination_dir: Path, destination_name: str) -> Path:
        ...
