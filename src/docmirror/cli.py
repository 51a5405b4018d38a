from __future__ import annotations

import argparse
from pathlib import Path
import sys

from docmirror.config import LOG_LEVELS, AppConfig, get_job, load_config
from docmirror.logging_setup import configure_logging
from docmirror.paths import library_local_root
from docmirror.reporter import render_summary
from docmirror.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_PARTIAL_FAILURES,
    EXIT_RUNTIME_OR_CONFIG_ERROR,
    EXIT_SUCCESS,
    ClientFactory,
    default_client_factory,
    run_config_jobs,
    select_libraries,
    unmatched_configured_libraries,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmirror",
        description="Incremental one-way mirror of site document libraries",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Mirror document libraries")
    run_parser.add_argument("--config", required=True, type=Path)
    run_parser.add_argument("--job", help="Run only one job by name")
    run_parser.add_argument("--library", help="Mirror only one library (title or root folder name)")
    run_parser.add_argument("--dry-run", action="store_true")
    run_parser.add_argument("--log-file", type=Path, default=None, help="Override logging.file")
    run_parser.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Override logging.level")

    validate_parser = subparsers.add_parser("validate-config", help="Validate config")
    validate_parser.add_argument("--config", required=True, type=Path)

    list_parser = subparsers.add_parser("list", help="List libraries and their local directories")
    list_parser.add_argument("--config", required=True, type=Path)
    list_parser.add_argument("--job", help="List only one job by name")
    list_parser.add_argument("--library", help="List only one library (title or root folder name)")

    return parser


def _load(config_path: Path) -> AppConfig | None:
    try:
        return load_config(config_path)
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return None


def cmd_validate(config_path: Path) -> int:
    config = _load(config_path)
    if config is None:
        return EXIT_INVALID_CONFIG

    print(f"Valid config: {config_path} ({len(config.jobs)} job(s))")
    for job in config.jobs:
        libraries = ",".join(job.libraries) if job.libraries else "(all)"
        print(
            f"  - job={job.name} "
            f"siteUrl={job.site_url} "
            f"downloadPath={job.download_path} "
            f"libraries={libraries} "
            f"maxUrlLength={job.max_url_length}"
        )
    return EXIT_SUCCESS


def cmd_list(
    config_path: Path,
    job_name: str | None,
    library_filter: str | None,
    client_factory: ClientFactory = default_client_factory,
) -> int:
    config = _load(config_path)
    if config is None:
        return EXIT_INVALID_CONFIG
    try:
        jobs = get_job(config, job_name)
    except ValueError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    partial_failures = False

    for job in jobs:
        try:
            libraries = client_factory(job).list_libraries()
        except Exception as exc:
            print(f"[{job.name}] failed to enumerate libraries: {exc}", file=sys.stderr)
            partial_failures = True
            continue

        unmatched = unmatched_configured_libraries(job, libraries)
        if unmatched:
            print(f"[{job.name}] configured libraries not found on site: {', '.join(unmatched)}", file=sys.stderr)
            partial_failures = True

        selected, error_message = select_libraries(job, libraries, library_filter)
        if error_message:
            print(error_message, file=sys.stderr)
            partial_failures = True
            continue

        print(f"job: {job.name} ({job.site_url})")
        for library in selected:
            local_root = library_local_root(job.download_path, library.root_folder_name)
            print(f"  - {library.title} -> {local_root} ({library.item_count} item(s))")
    return EXIT_PARTIAL_FAILURES if partial_failures else EXIT_SUCCESS


def cmd_run(
    config_path: Path,
    job_name: str | None,
    library_filter: str | None,
    dry_run: bool,
    log_file: Path | None = None,
    log_level: str | None = None,
    client_factory: ClientFactory = default_client_factory,
) -> int:
    config = _load(config_path)
    if config is None:
        return EXIT_INVALID_CONFIG

    logger = configure_logging(
        log_file=log_file or config.logging.file,
        level=log_level or config.logging.level,
    )
    logger.info("Run starting: config=%s dry_run=%s", config_path, dry_run)

    exit_code, report = run_config_jobs(
        config,
        job_name=job_name,
        library_filter=library_filter,
        dry_run=dry_run,
        logger=logger,
        client_factory=client_factory,
    )
    if exit_code in {EXIT_RUNTIME_OR_CONFIG_ERROR, EXIT_INVALID_CONFIG}:
        logger.info("Run ended without summary (exit code %s)", exit_code)
        return exit_code

    summary = render_summary(report)
    logger.info("Run finished\n%s", summary)
    print(summary)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "validate-config":
        return cmd_validate(args.config)
    if args.command == "list":
        return cmd_list(
            config_path=args.config,
            job_name=args.job,
            library_filter=args.library,
        )
    if args.command == "run":
        return cmd_run(
            config_path=args.config,
            job_name=args.job,
            library_filter=args.library,
            dry_run=args.dry_run,
            log_file=args.log_file,
            log_level=args.log_level,
        )

    parser.print_help()
    return EXIT_RUNTIME_OR_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
