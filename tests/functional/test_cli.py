"""
test_cli.py - End-to-end tests for the ``bankledger`` command

Runs the typer app in-process with typer.testing.CliRunner and checks the
CSV written to stdout or --output, exit codes and configuration sources.
"""

import pytest
from typer.testing import CliRunner

from bankledger.cli import app
from bankledger.config import MAX_WORKERS_ENV, SKIP_MALFORMED_ENV

HEADER = "client,available,held,total,locked\n"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with no bankledger variables set."""
    monkeypatch.chdir(tmp_path)
    for name in (MAX_WORKERS_ENV, SKIP_MALFORMED_ENV, "BANKLEDGER_LOG_LEVEL"):
        # setenv then delenv so variables loaded from .env are removed on teardown
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path


class TestOutput:

    def test_single_file_to_stdout(self, runner, clean_env, write_csv):
        path = write_csv("tx.csv", [
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ])
        result = runner.invoke(app, [str(path)])
        assert result.exit_code == 0, result.output
        assert result.stdout == HEADER + (
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,0.0000,2.0000,false\n"
        )

    def test_multiple_files(self, runner, clean_env, write_csv):
        a = write_csv("a.csv", ["deposit, 2, 1, 1.0"])
        b = write_csv("b.csv", ["deposit, 1, 2, 5.0", "dispute, 1, 2,"])
        result = runner.invoke(app, [str(a), str(b)])
        assert result.exit_code == 0, result.output
        assert result.stdout == HEADER + (
            "1,0.0000,5.0000,5.0000,false\n"
            "2,1.0000,0.0000,1.0000,false\n"
        )

    def test_no_files_prints_header(self, runner, clean_env):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert result.stdout == HEADER

    def test_output_file(self, runner, clean_env, write_csv):
        path = write_csv("tx.csv", ["deposit, 3, 1, 0.1234"])
        out = clean_env / "accounts.csv"
        result = runner.invoke(app, [str(path), "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert out.read_text(encoding="utf-8") == HEADER + "3,0.1234,0.0000,0.1234,false\n"

    def test_unwritable_output_exits_1(self, runner, clean_env, write_csv):
        path = write_csv("tx.csv", ["deposit, 3, 1, 1.0"])
        out = clean_env / "missing-dir" / "accounts.csv"
        result = runner.invoke(app, [str(path), "-o", str(out)])
        assert result.exit_code == 1
        assert "export failed" in result.output


class TestFailedStreams:

    def test_missing_file_still_exports(self, runner, clean_env, write_csv):
        good = write_csv("good.csv", ["deposit, 1, 1, 1.0"])
        result = runner.invoke(app, [str(clean_env / "nope.csv"), str(good)])
        assert result.exit_code == 0
        assert result.stdout.endswith("1,1.0000,0.0000,1.0000,false\n")

    def test_malformed_row_aborts_stream_by_default(self, runner, clean_env, write_csv):
        path = write_csv("tx.csv", ["deposit, 1, 1, 1.0", "oops, 1, 2, 1.0", "deposit, 1, 3, 1.0"])
        result = runner.invoke(app, [str(path)])
        assert result.exit_code == 0
        assert result.stdout.endswith("1,1.0000,0.0000,1.0000,false\n")

    def test_skip_malformed_rows_flag(self, runner, clean_env, write_csv):
        path = write_csv("tx.csv", ["deposit, 1, 1, 1.0", "oops, 1, 2, 1.0", "deposit, 1, 3, 1.0"])
        result = runner.invoke(app, [str(path), "--skip-malformed-rows"])
        assert result.exit_code == 0
        assert result.stdout.endswith("1,2.0000,0.0000,2.0000,false\n")


class TestConfiguration:

    def test_skip_policy_from_environment(self, runner, clean_env, write_csv, monkeypatch):
        monkeypatch.setenv(SKIP_MALFORMED_ENV, "true")
        path = write_csv("tx.csv", ["deposit, 1, 1, 1.0", "oops, 1, 2, 1.0", "deposit, 1, 3, 1.0"])
        result = runner.invoke(app, [str(path)])
        assert result.stdout.endswith("1,2.0000,0.0000,2.0000,false\n")

    def test_flag_overrides_environment(self, runner, clean_env, write_csv, monkeypatch):
        monkeypatch.setenv(SKIP_MALFORMED_ENV, "true")
        path = write_csv("tx.csv", ["deposit, 1, 1, 1.0", "oops, 1, 2, 1.0", "deposit, 1, 3, 1.0"])
        result = runner.invoke(app, [str(path), "--abort-on-malformed-row"])
        assert result.stdout.endswith("1,1.0000,0.0000,1.0000,false\n")

    def test_dotenv_file_is_loaded(self, runner, clean_env, write_csv):
        (clean_env / ".env").write_text(f"{SKIP_MALFORMED_ENV}=1\n", encoding="utf-8")
        path = write_csv("tx.csv", ["deposit, 1, 1, 1.0", "oops, 1, 2, 1.0", "deposit, 1, 3, 1.0"])
        result = runner.invoke(app, [str(path)])
        assert result.stdout.endswith("1,2.0000,0.0000,2.0000,false\n")

    def test_bad_environment_value_exits_2(self, runner, clean_env, monkeypatch):
        monkeypatch.setenv(MAX_WORKERS_ENV, "lots")
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert MAX_WORKERS_ENV in result.output

    def test_bad_log_level_exits_2(self, runner, clean_env):
        result = runner.invoke(app, ["--log-level", "LOUD"])
        assert result.exit_code == 2
        assert "Unknown log level" in result.output

    def test_max_workers_must_be_positive(self, runner, clean_env):
        result = runner.invoke(app, ["--max-workers", "0"])
        assert result.exit_code == 2

    def test_max_workers_option(self, runner, clean_env, write_csv):
        paths = [str(write_csv(f"s{i}.csv", [f"deposit, {i}, {i}, 1.0"])) for i in range(3)]
        result = runner.invoke(app, paths + ["--max-workers", "1"])
        assert result.exit_code == 0
        assert result.stdout.count("\n") == 4
