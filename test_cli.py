import pytest
import csv
import os
from click.testing import CliRunner

from gitticketstat import DEFAULT_FILE_NAME, VERSION, main

HEADER = ["Ticket", "Added", "Deleted", "Total", "Commits"]


@pytest.fixture
def runner():
    return CliRunner()


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_cli_writes_report(runner, git_repo, tmp_path):
    out = tmp_path / "out" / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--quiet"])
    assert result.exit_code == 0, result.output

    # git log is newest first, so PROJ-2 is seen before PROJ-1
    assert read_csv(out) == [
        HEADER,
        ["PROJ-2", "4", "1", "5", "3"],
        ["PROJ-1", "4", "1", "5", "2"],
    ]

def test_cli_output_directory_uses_default_name(runner, git_repo, tmp_path):
    result = runner.invoke(main, [git_repo, str(tmp_path), "-q"])
    assert result.exit_code == 0, result.output
    assert os.path.exists(tmp_path / DEFAULT_FILE_NAME)

def test_cli_custom_pattern_and_sort(runner, git_repo, tmp_path):
    out = tmp_path / "report.csv"
    result = runner.invoke(
        main, [git_repo, str(out), "-q", "--ticket-pattern", "PROJ-1", "--sort", "ticket"]
    )
    assert result.exit_code == 0, result.output
    assert read_csv(out) == [HEADER, ["PROJ-1", "4", "1", "5", "2"]]

def test_cli_verbose_output(runner, git_repo, tmp_path):
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--verbose", "--no-color"])
    assert result.exit_code == 0, result.output
    assert "Commits processed: 4" in result.output
    assert "Report saved to" in result.output

def test_cli_config_file(runner, git_repo, tmp_path):
    config = tmp_path / "settings.yaml"
    config.write_text("ticket-pattern: 'PROJ-2'\nquiet: true\n", encoding="utf-8")
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert read_csv(out) == [HEADER, ["PROJ-2", "4", "1", "5", "3"]]

def test_cli_invalid_pattern_fails_fast(runner, git_repo, tmp_path):
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--ticket-pattern", "[A-Z"])
    assert result.exit_code == 1
    assert "Invalid ticket pattern" in result.output
    assert not out.exists()

def test_cli_not_a_repository(runner, tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [str(plain), str(out), "--no-color"])
    assert result.exit_code == 1
    assert "Not a git repository" in result.output
    assert not out.exists()

def test_cli_empty_repository_writes_header(runner, empty_git_repo, tmp_path):
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [empty_git_repo, str(out), "-q"])
    assert result.exit_code == 0, result.output
    assert read_csv(out) == [HEADER]

def test_cli_dry_run(runner, git_repo, tmp_path):
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--dry-run", "--no-color"])
    assert result.exit_code == 0
    assert "DRY RUN" in result.output
    assert not out.exists()

def test_cli_help_when_arguments_missing(runner):
    result = runner.invoke(main, [])
    assert result.exit_code == 2
    assert "Usage" in result.output

def test_cli_help_and_version(runner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "--ticket-pattern" in result.output

    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert VERSION in result.output

def test_cli_unwritable_output_exits_with_error(runner, git_repo, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory\n", encoding="utf-8")
    out = blocker / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--no-color"])
    assert result.exit_code == 1
    assert "Failed to write report" in result.output
    assert blocker.read_text(encoding="utf-8") == "not a directory\n"

def test_cli_failed_write_keeps_previous_report(runner, git_repo, tmp_path, monkeypatch):
    out = tmp_path / "report.csv"
    out.write_text("previous report\n", encoding="utf-8")

    def fail_replace(src, dst):
        raise PermissionError("denied")

    monkeypatch.setattr(os, "replace", fail_replace)
    result = runner.invoke(main, [git_repo, str(out), "-q"])
    assert result.exit_code == 1
    assert out.read_text(encoding="utf-8") == "previous report\n"
    assert sorted(p.name for p in tmp_path.iterdir() if p.is_file()) == ["report.csv"]

@pytest.mark.parametrize("content", [b"sort: \xff\xfe\n", b"1: x\n", b"quiet: 'false'\n"])
def test_cli_bad_config_file_exits_with_error(runner, git_repo, tmp_path, content):
    config = tmp_path / "settings.yaml"
    config.write_bytes(content)
    out = tmp_path / "report.csv"
    result = runner.invoke(main, [git_repo, str(out), "--config", str(config), "--no-color"])
    assert result.exit_code == 1
    assert "ERROR" in result.output
    assert not isinstance(result.exception, (UnicodeDecodeError, AttributeError))
    assert not out.exists()
