"""Unit tests for CLI functions."""

import json
import signal
from pathlib import Path

import pytest
import yaml

from swapfc.cli import (
    create_parser,
    echo_level,
    install_signal_handlers,
    main,
    restore_signal_handlers,
)
from swapfc.core.sentinel import CancellationToken
from swapfc.core.logging import EventLogger, get_log_path
from tests.conftest import SWAP_TOOLS_OK, MockContext, load_fixture


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config rooted in tmp_path and return its path."""
    def _write(**overrides) -> Path:
        values = {
            "pool_path": str(tmp_path / "pool"),
            "lock_path": str(tmp_path / "run" / ".lock"),
            "chunk_size": "64K",
            "buffer_size": "4K",
            "log_dir": str(tmp_path / "log"),
        }
        values.update(overrides)
        path = tmp_path / "swapfc.yaml"
        path.write_text(yaml.safe_dump(values))
        return path
    return _write


def swaps_table(*paths: str) -> str:
    lines = ["Filename\t\t\t\tType\t\tSize\t\tUsed\t\tPriority"]
    for path in paths:
        lines.append(f"{path}\tfile\t\t12\t\t4\t\t-2")
    return "\n".join(lines) + "\n"


class StoppingContext(MockContext):
    """Removes the lock after a number of sleeps, like `swapfc stop` would."""

    def __init__(self, lock_path: str, stop_after: int = 1, **kwargs):
        super().__init__(**kwargs)
        self.lock_path = lock_path
        self.stop_after = stop_after

    def sleep(self, seconds: float) -> None:
        super().sleep(seconds)
        if len(self.sleeps) >= self.stop_after:
            Path(self.lock_path).unlink(missing_ok=True)


class TestCreateParser:
    """Tests for create_parser."""

    def test_parser_has_subcommands(self):
        parser = create_parser()

        for command in ["run", "status", "stop", "logs"]:
            assert parser.parse_args([command]).command == command

    def test_logs_options(self):
        args = create_parser().parse_args(["logs", "--date", "2024-03-09", "--level", "error"])

        assert args.date.isoformat() == "2024-03-09"
        assert args.level == "error"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])

        assert exc.value.code == 0
        assert "swapfc 0.1.0" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: swapfc" in capsys.readouterr().out


class TestEchoLevel:
    """Tests for echo_level."""

    def test_verbose_wins(self):
        args = create_parser().parse_args(["run", "-v"])

        assert echo_level(args, MockContext(env={"SWAPFC_LOG_LEVEL": "error"})) == "debug"

    def test_environment(self):
        args = create_parser().parse_args(["run"])

        assert echo_level(args, MockContext(env={"SWAPFC_LOG_LEVEL": "WARNING"})) == "warning"
        assert echo_level(args, MockContext(env={"SWAPFC_LOG_LEVEL": "loud"})) == "info"
        assert echo_level(args, MockContext()) == "info"


class TestConfigErrors:
    """Tests for configuration failures."""

    def test_missing_config_file(self, tmp_path, capsys):
        result = main(["--config", str(tmp_path / "missing.yaml"), "status"], context=MockContext())

        assert result == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_thresholds(self, write_config, capsys):
        config = write_config(free_percent=60, remove_free_percent=50)

        assert main(["--config", str(config), "status"], context=MockContext()) == 2
        assert "free_percent" in capsys.readouterr().err


class TestCmdRun:
    """Tests for the run command."""

    def test_runs_until_lock_removed(self, write_config, tmp_path):
        """The daemon starts, ticks and exits once the lock disappears."""
        config = write_config(min_count=1)
        ctx = StoppingContext(
            str(tmp_path / "run" / ".lock"),
            stop_after=2,
            tools_available=["mkswap", "swapon", "swapoff"],
            command_outputs=dict(SWAP_TOOLS_OK),
            file_contents={"/proc/meminfo": load_fixture("proc", "meminfo_healthy.txt")},
        )

        assert main(["--config", str(config), "run"], context=ctx) == 0

        assert (tmp_path / "pool" / "1").exists()
        assert ctx.commands_for("swapoff") == []
        assert len(ctx.sleeps) == 2
        log = get_log_path(tmp_path / "log").read_text()
        assert "Swap file pool started" in log
        assert "Stop requested, exiting" in log

    def test_startup_failure(self, write_config, tmp_path, capsys):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        config = write_config(pool_path=str(blocker / "pool"))

        assert main(["--config", str(config), "run"], context=MockContext()) == 1
        assert "Startup failed" in capsys.readouterr().err

    def test_handlers_restored_after_run(self, write_config, tmp_path):
        config = write_config()
        ctx = StoppingContext(
            str(tmp_path / "run" / ".lock"),
            file_contents={"/proc/meminfo": load_fixture("proc", "meminfo_healthy.txt")},
        )
        before = signal.getsignal(signal.SIGTERM)

        assert main(["--config", str(config), "run"], context=ctx) == 0

        assert signal.getsignal(signal.SIGTERM) is before


class TestSignalHandlers:
    """Tests for stop signal handling."""

    @pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
    def test_signal_cancels_token(self, signum):
        """A stop signal only flags the loop; the current tick runs to completion."""
        token = CancellationToken()
        previous = install_signal_handlers(token)
        try:
            handler = signal.getsignal(signum)
            handler(signum, None)
        finally:
            restore_signal_handlers(previous)

        assert token.cancelled is True
        assert signal.getsignal(signum) is previous[signum]


class TestCmdStatus:
    """Tests for the status command."""

    def test_healthy_pool(self, write_config, tmp_path, capsys):
        config = write_config()
        pool = tmp_path / "pool"
        pool.mkdir()
        for name in ["1", "2"]:
            (pool / name).write_bytes(b"")
        ctx = MockContext(
            file_contents={
                "/proc/meminfo": load_fixture("proc", "meminfo_healthy.txt"),
                "/proc/swaps": swaps_table(str(pool / "1"), str(pool / "2")),
            }
        )

        result = main(["--config", str(config), "status", "--format", "json"], context=ctx)

        assert result == 0
        data = json.loads(capsys.readouterr().out)
        assert data["running"] is False
        assert [f["index"] for f in data["files"]] == [1, 2]
        assert all(f["active"] for f in data["files"])
        assert data["ram_free_percent"] == 50
        assert data["swap_free_percent"] == 89
        assert "warnings" not in data

    def test_reports_gaps_and_inactive_files(self, write_config, tmp_path, capsys):
        config = write_config()
        pool = tmp_path / "pool"
        pool.mkdir()
        for name in ["1", "3"]:
            (pool / name).write_bytes(b"")
        ctx = MockContext(
            file_contents={
                "/proc/meminfo": load_fixture("proc", "meminfo_healthy.txt"),
                "/proc/swaps": swaps_table(str(pool / "1")),
            }
        )

        result = main(["--config", str(config), "status"], context=ctx)

        assert result == 1
        out = capsys.readouterr().out
        assert "swapfc status" in out
        assert "numbering has gaps" in out
        assert "not active: [3]" in out

    def test_missing_pool_and_meminfo(self, write_config, capsys):
        config = write_config()

        result = main(["--config", str(config), "status", "--format", "json"], context=MockContext())

        assert result == 1
        data = json.loads(capsys.readouterr().out)
        assert data["files"] == []
        assert data["ram_free_percent"] is None


class TestCmdStop:
    """Tests for the stop command."""

    def test_not_running(self, write_config, capsys):
        config = write_config()

        assert main(["--config", str(config), "stop"], context=MockContext()) == 1
        assert "not running" in capsys.readouterr().err

    def test_removes_lock(self, write_config, tmp_path, capsys):
        config = write_config()
        lock = tmp_path / "run" / ".lock"
        lock.parent.mkdir()
        lock.write_text("")

        assert main(["--config", str(config), "stop"], context=MockContext()) == 0
        assert not lock.exists()
        assert "Stop requested" in capsys.readouterr().out


class TestCmdLogs:
    """Tests for the logs command."""

    def test_no_entries(self, write_config, capsys):
        config = write_config()

        assert main(["--config", str(config), "logs"], context=MockContext()) == 0
        assert "No log entries found." in capsys.readouterr().out

    def test_plain_and_json(self, write_config, tmp_path, capsys):
        config = write_config()
        with EventLogger(tmp_path / "log", echo_level=None) as logger:
            logger.debug("hidden")
            logger.info("Swap file allocated", allocated=1)
            logger.error("Swap file removal failed")

        assert main(["--config", str(config), "logs"], context=MockContext()) == 0
        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "INFO    Swap file allocated allocated=1" in out

        main(["--config", str(config), "logs", "--level", "error", "--format", "json"], context=MockContext())
        lines = capsys.readouterr().out.splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["Swap file removal failed"]
