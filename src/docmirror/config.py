from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import json
import yaml


DEFAULT_EXCLUDES = [
    "~$*",
]

DEFAULT_MAX_URL_LENGTH = 400

LOG_LEVELS = ("full", "info", "warn", "error")


@dataclass(slots=True)
class LoggingConfig:
    file: Path | None = None
    level: str = "info"


@dataclass(slots=True)
class JobConfig:
    name: str
    site_root: Path
    site_url: str
    download_path: Path
    libraries: list[str] = field(default_factory=list)
    additional_excludes: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    max_url_length: int = DEFAULT_MAX_URL_LENGTH
    create_download_path_if_missing: bool = True


@dataclass(slots=True)
class AppConfig:
    jobs: list[JobConfig]
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _as_path(value: Any, field_name: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string path")
    return Path(value).expanduser()


def _as_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValueError(f"{field_name} must be a boolean")


def _as_positive_int(value: Any, field_name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{field_name} must be a positive integer")
    return value


def _as_list_of_strings(value: Any, field_name: str, default: list[str] | None = None) -> list[str]:
    if value is None:
        return list(default or [])
    if not isinstance(value, list) or any(not isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return [item for item in value if item.strip()]


def _as_site_url(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.startswith("/"):
        raise ValueError(f"{field_name} must be a server-relative URL starting with '/'")
    return value.rstrip("/") or "/"


def _load_raw_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ValueError(f"Config file does not exist: {config_path}")

    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in {".yml", ".yaml"}:
        loaded = yaml.safe_load(text)
    elif suffix == ".json":
        loaded = json.loads(text)
    else:
        raise ValueError("Config file must be .yaml/.yml or .json")

    if not isinstance(loaded, dict):
        raise ValueError("Config root must be an object")
    return loaded


def _load_logging(raw: Any) -> LoggingConfig:
    if raw is None:
        return LoggingConfig()
    if not isinstance(raw, dict):
        raise ValueError("logging must be an object")

    raw_file = raw.get("file")
    log_file = _as_path(raw_file, "logging.file") if raw_file is not None else None
    level = raw.get("level", "info")
    if level not in LOG_LEVELS:
        raise ValueError(f"logging.level must be one of: {', '.join(LOG_LEVELS)}")
    return LoggingConfig(file=log_file, level=level)


def load_config(config_path: Path) -> AppConfig:
    raw = _load_raw_config(config_path)
    raw_jobs = raw.get("jobs")
    if not isinstance(raw_jobs, list) or not raw_jobs:
        raise ValueError("Config must contain non-empty 'jobs' list")

    jobs: list[JobConfig] = []
    names: set[str] = set()

    for index, raw_job in enumerate(raw_jobs):
        if not isinstance(raw_job, dict):
            raise ValueError(f"jobs[{index}] must be an object")

        name = raw_job.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"jobs[{index}].name must be a non-empty string")
        if name in names:
            raise ValueError(f"Duplicate job name: {name}")
        names.add(name)

        jobs.append(
            JobConfig(
                name=name,
                site_root=_as_path(raw_job.get("siteRoot"), f"jobs[{index}].siteRoot"),
                site_url=_as_site_url(raw_job.get("siteUrl"), f"jobs[{index}].siteUrl"),
                download_path=_as_path(raw_job.get("downloadPath"), f"jobs[{index}].downloadPath"),
                libraries=_as_list_of_strings(raw_job.get("libraries"), f"jobs[{index}].libraries"),
                additional_excludes=_as_list_of_strings(
                    raw_job.get("additionalExcludes"),
                    f"jobs[{index}].additionalExcludes",
                    default=DEFAULT_EXCLUDES,
                ),
                max_url_length=_as_positive_int(
                    raw_job.get("maxUrlLength"), f"jobs[{index}].maxUrlLength", default=DEFAULT_MAX_URL_LENGTH
                ),
                create_download_path_if_missing=_as_bool(
                    raw_job.get("createDownloadPathIfMissing"),
                    f"jobs[{index}].createDownloadPathIfMissing",
                    default=True,
                ),
            )
        )

    return AppConfig(jobs=jobs, logging=_load_logging(raw.get("logging")))


def get_job(config: AppConfig, job_name: str | None) -> list[JobConfig]:
    if not job_name:
        return config.jobs
    matched = [job for job in config.jobs if job.name == job_name]
    if not matched:
        raise ValueError(f"No job named '{job_name}' found")
    return matched
