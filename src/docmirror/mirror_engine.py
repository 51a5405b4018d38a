from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Iterable

from docmirror.models import LibraryTarget, RemoteItem, RunCounters
from docmirror.paths import split_file_path, translate_server_path
from docmirror.remote_client import RemoteSiteClient, is_path_too_long


FORMS_FOLDER_NAME = "Forms"

_log = logging.getLogger("docmirror.engine")


@dataclass(slots=True)
class MirrorRunOptions:
    dry_run: bool = False


def _as_aware(value: datetime) -> datetime:
    # naive timestamps are taken as local time
    return value if value.tzinfo is not None else value.astimezone()


def _local_last_write(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def is_remote_newer(remote_modified: datetime | None, local_file: Path) -> bool:
    if remote_modified is None:
        return False
    return _as_aware(remote_modified) > _local_last_write(local_file)


def materialize_folders(
    items: Iterable[RemoteItem],
    download_root: Path,
    site_prefix: str,
    options: MirrorRunOptions | None = None,
) -> int:
    options = options or MirrorRunOptions()
    created = 0
    for item in items:
        if not item.is_folder or item.leaf_name == FORMS_FOLDER_NAME:
            continue
        local_dir = translate_server_path(download_root, item.server_relative_path, site_prefix)
        if local_dir.is_dir():
            continue
        if not options.dry_run:
            local_dir.mkdir(parents=True, exist_ok=True)
        created += 1
    return created


def _transfer(
    client: RemoteSiteClient,
    item: RemoteItem,
    destination_dir: Path,
    destination_name: str,
    options: MirrorRunOptions,
    log: logging.Logger,
) -> bool:
    """Fetch one file; False means the URL length limit rejected it."""
    if options.dry_run:
        return True
    try:
        client.fetch_file(item.server_relative_path, destination_dir, destination_name)
    except Exception as exc:
        if is_path_too_long(exc):
            log.warning("Skipped (path too long): %s", item.server_relative_path)
            return False
        log.debug("Fetch failed for %s: %r", item.server_relative_path, exc)
        raise
    return True


def mirror_library(
    client: RemoteSiteClient,
    library: LibraryTarget,
    items: Iterable[RemoteItem],
    download_root: Path,
    site_prefix: str,
    options: MirrorRunOptions | None = None,
    logger: logging.Logger | None = None,
) -> RunCounters:
    options = options or MirrorRunOptions()
    log = logger or _log
    counters = RunCounters()

    for item in items:
        if not item.is_file:
            continue

        destination_dir, destination_name = split_file_path(download_root, item, site_prefix)
        local_file = destination_dir / destination_name

        if not local_file.exists():
            if _transfer(client, item, destination_dir, destination_name, options, log):
                counters.copied += 1
                log.info("[%s] Copied: %s", library.title, local_file)
            else:
                counters.skipped_path_too_long += 1
            continue

        if not is_remote_newer(item.modified_at, local_file):
            counters.skipped_exists += 1
            log.debug("[%s] Exists, not newer: %s", library.title, local_file)
            continue

        if _transfer(client, item, destination_dir, destination_name, options, log):
            counters.copied_updated += 1
            log.info("[%s] Updated: %s", library.title, local_file)
        else:
            counters.skipped_path_too_long += 1

    return counters
