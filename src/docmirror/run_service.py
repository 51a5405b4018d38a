from __future__ import annotations

from pathlib import Path
from typing import Callable
import logging

from docmirror.config import AppConfig, JobConfig, get_job, load_config
from docmirror.ignore_engine import build_ignore_engine
from docmirror.mirror_engine import MirrorRunOptions, materialize_folders, mirror_library
from docmirror.models import LibraryTarget
from docmirror.mounted_site import MountedSiteClient
from docmirror.remote_client import RemoteSiteClient
from docmirror.reporter import LibraryReport, RunReport


EXIT_SUCCESS = 0
EXIT_RUNTIME_OR_CONFIG_ERROR = 1
EXIT_PARTIAL_FAILURES = 2
EXIT_INVALID_CONFIG = 3

ClientFactory = Callable[[JobConfig], RemoteSiteClient]


def default_client_factory(job: JobConfig) -> RemoteSiteClient:
    return MountedSiteClient(job.site_root, job.site_url, max_url_length=job.max_url_length)


def unmatched_configured_libraries(job: JobConfig, libraries: list[LibraryTarget]) -> list[str]:
    known = {lib.title for lib in libraries} | {lib.root_folder_name for lib in libraries}
    return [name for name in job.libraries if name not in known]


def select_libraries(
    job: JobConfig,
    libraries: list[LibraryTarget],
    library_filter: str | None,
) -> tuple[list[LibraryTarget], str | None]:
    if job.libraries:
        wanted = set(job.libraries)
        libraries = [lib for lib in libraries if lib.title in wanted or lib.root_folder_name in wanted]

    if not library_filter:
        return libraries, None

    exact = [lib for lib in libraries if lib.title == library_filter]
    if exact:
        return exact, None

    by_folder = [lib for lib in libraries if lib.root_folder_name == library_filter]
    if len(by_folder) > 1:
        return [], f"[{job.name}] library filter '{library_filter}' is ambiguous; use the library title"
    if len(by_folder) == 1:
        return by_folder, None

    return [], f"[{job.name}] no library matched filter '{library_filter}'"


def mirror_one_library(
    job: JobConfig,
    client: RemoteSiteClient,
    library: LibraryTarget,
    options: MirrorRunOptions,
    log: logging.Logger,
) -> LibraryReport:
    """List, filter and mirror one library.

    Listing failures are recorded on the returned report. Transfer failures
    other than the URL length limit propagate and end the run.
    """
    report = LibraryReport(job=job.name, title=library.title, item_count=library.item_count)
    site_prefix = client.server_relative_url

    log.info("[%s] Listing library '%s' (%s item(s))", job.name, library.title, library.item_count)
    try:
        items = client.list_items(
            library,
            progress=lambda count: log.debug("[%s] %s: listed %s item(s)", job.name, library.title, count),
        )
    except Exception as exc:
        log.error("[%s] Failed to list library '%s': %s", job.name, library.title, exc)
        report.error = str(exc)
        return report

    kept, report.excluded = build_ignore_engine(job).filter_items(items, site_prefix)
    report.folders_created = materialize_folders(kept, job.download_path, site_prefix, options)
    report.counters = mirror_library(
        client,
        library,
        kept,
        job.download_path,
        site_prefix,
        options=options,
        logger=log,
    )
    log.info(
        "[%s] %s -> %s | copied=%s updated=%s exists=%s too_long=%s excluded=%s",
        job.name,
        library.title,
        job.download_path / library.root_folder_name,
        report.counters.copied,
        report.counters.copied_updated,
        report.counters.skipped_exists,
        report.counters.skipped_path_too_long,
        report.excluded,
    )
    return report


def _prepare_download_path(job: JobConfig, options: MirrorRunOptions) -> None:
    if job.download_path.is_dir():
        return
    if not job.create_download_path_if_missing:
        raise ValueError(f"Download path does not exist: {job.download_path}")
    if not options.dry_run:
        job.download_path.mkdir(parents=True, exist_ok=True)


def run_job(
    job: JobConfig,
    client: RemoteSiteClient,
    report: RunReport,
    library_filter: str | None,
    options: MirrorRunOptions,
    log: logging.Logger,
) -> None:
    try:
        _prepare_download_path(job, options)
        libraries = client.list_libraries()
    except Exception as exc:
        log.error("[%s] Failed to enumerate libraries: %s", job.name, exc)
        report.partial_failures = True
        return

    unmatched = unmatched_configured_libraries(job, libraries)
    if unmatched:
        log.warning("[%s] Configured libraries not found on site: %s", job.name, ", ".join(unmatched))
        report.partial_failures = True

    selected, error_message = select_libraries(job, libraries, library_filter)
    if error_message:
        log.error("%s", error_message)
        report.partial_failures = True
        return

    for library in selected:
        if library.item_count == 0:
            log.info("[%s] Skipping empty library '%s'", job.name, library.title)
            continue
        report.absorb(mirror_one_library(job, client, library, options, log))


def run_config_jobs(
    config: AppConfig,
    job_name: str | None = None,
    library_filter: str | None = None,
    dry_run: bool = False,
    logger: logging.Logger | None = None,
    client_factory: ClientFactory | None = None,
) -> tuple[int, RunReport]:
    log = logger or logging.getLogger("docmirror.run")
    factory = client_factory or default_client_factory

    try:
        jobs = get_job(config, job_name)
    except ValueError as exc:
        log.error("Config/runtime error: %s", exc)
        return EXIT_INVALID_CONFIG, RunReport(partial_failures=True)

    report = RunReport()
    options = MirrorRunOptions(dry_run=dry_run)

    for job in jobs:
        try:
            run_job(job, factory(job), report, library_filter, options, log)
        except Exception as exc:
            log.error("[%s] Run aborted: %s", job.name, exc)
            report.partial_failures = True
            return EXIT_RUNTIME_OR_CONFIG_ERROR, report

    exit_code = EXIT_PARTIAL_FAILURES if report.partial_failures else EXIT_SUCCESS
    return exit_code, report


def run_mirror_jobs(
    config_path: Path,
    job_name: str | None = None,
    library_filter: str | None = None,
    dry_run: bool = False,
    logger: logging.Logger | None = None,
    client_factory: ClientFactory | None = None,
) -> tuple[int, RunReport]:
    log = logger or logging.getLogger("docmirror.run")

    try:
        config = load_config(config_path)
    except Exception as exc:
        log.error("Config/runtime error: %s", exc)
        return EXIT_INVALID_CONFIG, RunReport(partial_failures=True)

    return run_config_jobs(
        config,
        job_name=job_name,
        library_filter=library_filter,
        dry_run=dry_run,
        logger=log,
        client_factory=client_factory,
    )
