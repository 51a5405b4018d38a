from pathlib import Path

import pytest

from conftest import FakeSiteClient, utc
from docmirror.cli import cmd_run, main
from docmirror.remote_client import FetchError
from docmirror.run_service import (
    EXIT_INVALID_CONFIG,
    EXIT_PARTIAL_FAILURES,
    EXIT_RUNTIME_OR_CONFIG_ERROR,
    EXIT_SUCCESS,
)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def site_config(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    _write(site / "Documents" / "a.docx", "a")
    _write(site / "Policies" / "p.docx", "p")

    config_file = tmp_path / "cfg.yaml"
    config_file.write_text(
        "logging:\n"
        f"  file: {(tmp_path / 'logs' / 'docmirror.log').as_posix()}\n"
        "jobs:\n"
        "  - name: j\n"
        f"    siteRoot: {site.as_posix()}\n"
        "    siteUrl: /sites/team\n"
        f"    downloadPath: {(tmp_path / 'backup').as_posix()}\n",
        encoding="utf-8",
    )
    return config_file


def test_run_prints_summary_and_writes_log(tmp_path: Path, site_config: Path, capsys) -> None:
    exit_code = main(["run", "--config", str(site_config)])

    output = capsys.readouterr().out
    assert exit_code == EXIT_SUCCESS
    assert "Libraries processed: 2 of 2" in output
    assert "Copied:                   2" in output
    assert (tmp_path / "backup" / "Policies" / "p.docx").exists()
    log_text = (tmp_path / "logs" / "docmirror.log").read_text(encoding="utf-8")
    assert "Copied:" in log_text


def test_run_library_filter_by_title_runs_single_library(tmp_path: Path, site_config: Path, capsys) -> None:
    exit_code = main(["run", "--config", str(site_config), "--library", "Policies", "--dry-run"])

    output = capsys.readouterr().out
    assert exit_code == EXIT_SUCCESS
    assert "[j] Policies: 1 item(s)" in output
    assert "Documents" not in output
    assert not (tmp_path / "backup" / "Policies" / "p.docx").exists()


def test_run_library_filter_missing_echoes_error_to_console(site_config: Path, capsys) -> None:
    exit_code = main(["run", "--config", str(site_config), "--library", "Missing"])

    captured = capsys.readouterr()
    assert exit_code == EXIT_PARTIAL_FAILURES
    assert "no library matched filter 'Missing'" in captured.err


def test_run_log_level_override_filters_info(tmp_path: Path, site_config: Path) -> None:
    log_file = tmp_path / "override.log"

    exit_code = main(["run", "--config", str(site_config), "--log-file", str(log_file), "--log-level", "error"])

    assert exit_code == EXIT_SUCCESS
    assert log_file.read_text(encoding="utf-8") == ""


def test_run_fatal_fetch_failure_skips_summary(tmp_path: Path, site_config: Path, capsys) -> None:
    client = FakeSiteClient()
    docs = client.add_library("Documents")
    broken = client.add_file(docs, "a.docx", utc(2024))
    client.failures[broken.server_relative_path] = FetchError(broken.server_relative_path, "403 Forbidden")

    exit_code = cmd_run(
        config_path=site_config,
        job_name=None,
        library_filter=None,
        dry_run=False,
        client_factory=lambda job: client,
    )

    captured = capsys.readouterr()
    assert exit_code == EXIT_RUNTIME_OR_CONFIG_ERROR
    assert "Mirror summary" not in captured.out
    assert captured.err.count("403 Forbidden") == 1


def test_run_invalid_config(tmp_path: Path, capsys) -> None:
    config_file = tmp_path / "cfg.toml"
    config_file.write_text("", encoding="utf-8")

    exit_code = main(["run", "--config", str(config_file)])

    assert exit_code == EXIT_INVALID_CONFIG
    assert "Invalid config" in capsys.readouterr().err


def test_list_prints_library_mappings(tmp_path: Path, site_config: Path, capsys) -> None:
    exit_code = main(["list", "--config", str(site_config)])

    output = capsys.readouterr().out
    assert exit_code == EXIT_SUCCESS
    assert "job: j (/sites/team)" in output
    assert f"Documents -> {tmp_path / 'backup' / 'Documents'} (1 item(s))" in output


def test_list_library_filter_missing_returns_partial_failure(site_config: Path, capsys) -> None:
    exit_code = main(["list", "--config", str(site_config), "--library", "Missing"])

    assert exit_code == EXIT_PARTIAL_FAILURES
    assert "no library matched filter 'Missing'" in capsys.readouterr().err


def test_validate_config_prints_job_summary(site_config: Path, capsys) -> None:
    exit_code = main(["validate-config", "--config", str(site_config)])

    output = capsys.readouterr().out
    assert exit_code == EXIT_SUCCESS
    assert "job=j" in output
    assert "siteUrl=/sites/team" in output
    assert "libraries=(all)" in output


def test_list_reports_unmatched_configured_libraries(tmp_path: Path, site_config: Path, capsys) -> None:
    text = site_config.read_text(encoding="utf-8")
    site_config.write_text(text + "    libraries: [Documents, Archive]\n", encoding="utf-8")

    exit_code = main(["list", "--config", str(site_config)])

    captured = capsys.readouterr()
    assert exit_code == EXIT_PARTIAL_FAILURES
    assert "configured libraries not found on site: Archive" in captured.err
    assert "Documents ->" in captured.out
