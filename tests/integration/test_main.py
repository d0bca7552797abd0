"""
Integration tests for the zippack command line.

Tests cover:
- Successful run from a TOML file
- Exit codes for configuration and filesystem errors
- Environment-provided config path
"""

import json
import logging
import tempfile
import zipfile
from pathlib import Path

import pytest

from zippack.main import EXIT_CONFIG_ERROR, EXIT_OK, EXIT_RUN_ERROR, main, setup_logging


class TestMain:
    """Tests for main()."""

    @pytest.fixture
    def workdir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir)
            (base / "root" / "docs").mkdir(parents=True)
            (base / "root" / "docs" / "guide.md").write_text("# guide\n")
            (base / "root" / "main.py").write_text("print('hi')\n")
            yield base

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root_logger = logging.getLogger()
        handlers, level = root_logger.handlers[:], root_logger.level
        yield
        root_logger.handlers = handlers
        root_logger.setLevel(level)

    def write_config(self, workdir: Path, root: Path | None = None) -> Path:
        path = workdir / "config.toml"
        path.write_text(
            f'root = "{root or workdir / "root"}"\n'
            'root_name = "rest"\n'
            'root_compression = "deflate"\n'
            f'output = "{workdir / "out"}"\n'
            "zip_limit = 1000000\n"
            "\n"
            "[zip.docs]\n"
            'path = "docs"\n'
        )
        return path

    def test_successful_run(self, workdir, capsys):
        config = self.write_config(workdir)

        code = main(["--config", str(config)])

        assert code == EXIT_OK
        with zipfile.ZipFile(workdir / "out" / "docs_1.zip") as zf:
            assert zf.namelist() == [str(workdir / "root" / "docs" / "guide.md").lstrip("/")]
        with zipfile.ZipFile(workdir / "out" / "rest_1.zip") as zf:
            assert zf.namelist() == [str(workdir / "root" / "main.py").lstrip("/")]
        assert "-- Fancy Zip Packer --" in capsys.readouterr().out

    def test_quiet_run(self, workdir, capsys):
        config = self.write_config(workdir)

        assert main(["--config", str(config), "--quiet"]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_config_from_environment(self, workdir, monkeypatch):
        config = self.write_config(workdir)
        monkeypatch.setenv("ZIPPACK_CONFIG_FILE", str(config))

        assert main(["-q"]) == EXIT_OK
        assert (workdir / "out" / "rest_1.zip").exists()

    def test_missing_config(self, workdir, capsys):
        code = main(["--config", str(workdir / "missing.toml")])

        assert code == EXIT_CONFIG_ERROR
        assert "Configuration error" in capsys.readouterr().err
        assert not (workdir / "out").exists()

    def test_filesystem_error_exit_code(self, workdir, capsys):
        config = self.write_config(workdir, root=workdir / "no-such-root")

        code = main(["--config", str(config), "-q"])

        assert code == EXIT_RUN_ERROR
        assert "Packing failed" in capsys.readouterr().err


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root_logger = logging.getLogger()
        handlers, level = root_logger.handlers[:], root_logger.level
        yield
        root_logger.handlers = handlers
        root_logger.setLevel(level)

    def test_text_format(self):
        setup_logging("warning", "text")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1

    def test_json_format(self):
        setup_logging("INFO", "json")

        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord("zippack", logging.INFO, __file__, 1, "hello", None, None)
        record.archive = "base"
        payload = json.loads(handler.formatter.format(record))

        assert payload["message"] == "hello"
        assert payload["archive"] == "base"

    def test_unknown_level_defaults_to_info(self):
        setup_logging("chatty", "text")

        assert logging.getLogger().level == logging.INFO
