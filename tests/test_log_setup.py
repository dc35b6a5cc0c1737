"""
Logging setup tests: -v/-q level mapping, repeated setup_logging calls,
and debug records from a -vv CLI run.
"""

import io
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

import arithc
from arith_compiler.log_setup import LOGGER_NAME, level_for, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    logger.handlers = []
    yield logger
    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def _rich_handlers(logger):
    return [h for h in logger.handlers if isinstance(h, RichHandler)]


class TestLevelFor:
    def test_default_is_warning(self):
        assert level_for() == logging.WARNING
        assert level_for(0, False) == logging.WARNING

    def test_verbose_counts(self):
        assert level_for(1) == logging.INFO
        assert level_for(2) == logging.DEBUG
        assert level_for(5) == logging.DEBUG

    def test_quiet_wins_over_verbose(self):
        assert level_for(0, True) == logging.ERROR
        assert level_for(2, True) == logging.ERROR


class TestSetupLogging:
    def test_installs_one_rich_handler(self, package_logger):
        logger = setup_logging(1, console=Console(file=io.StringIO()))
        assert logger is package_logger
        assert len(_rich_handlers(logger)) == 1
        assert logger.level == logging.INFO

    def test_second_call_only_changes_level(self, package_logger):
        setup_logging(0, console=Console(file=io.StringIO()))
        first = _rich_handlers(package_logger)[0]
        assert first.level == logging.WARNING

        setup_logging(2)
        handlers = _rich_handlers(package_logger)
        assert handlers == [first]
        assert package_logger.level == logging.DEBUG
        assert first.level == logging.DEBUG

    def test_quiet_filters_info(self, package_logger):
        buf = io.StringIO()
        setup_logging(quiet=True, console=Console(file=buf, width=200))
        logging.getLogger(f"{LOGGER_NAME}.lexer").info("info record")
        logging.getLogger(f"{LOGGER_NAME}.lexer").error("error record")
        assert "info record" not in buf.getvalue()
        assert "error record" in buf.getvalue()


class TestCliVerbosity:
    def test_debug_records_reach_caplog(self, package_logger, tmp_path, caplog, capsys):
        path = tmp_path / "input.xyz"
        path.write_text("8-3-2", encoding="utf-8")
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

        assert arithc.main([str(path), "-vv", "--ir"]) == 0

        messages = [r.getMessage() for r in caplog.records]
        assert "Lexed 5 tokens" in messages
        assert "Lowered AST to 5 IR instructions" in messages
        assert any(m.startswith("Input:") for m in messages)
        assert len(_rich_handlers(package_logger)) == 1
        assert "PUSH 8" in capsys.readouterr().out

    def test_debug_records_reach_injected_console(self, package_logger, tmp_path, capsys):
        path = tmp_path / "input.xyz"
        path.write_text("1+2", encoding="utf-8")
        buf = io.StringIO()
        setup_logging(console=Console(file=buf, width=200))

        assert arithc.main([str(path), "-vv", "--ir"]) == 0

        logged = buf.getvalue()
        assert "Lexed 3 tokens" in logged
        assert "Lowered AST to 3 IR instructions" in logged
        assert len(_rich_handlers(package_logger)) == 1

    def test_default_run_logs_nothing(self, package_logger, tmp_path):
        path = tmp_path / "input.xyz"
        path.write_text("1+2", encoding="utf-8")
        buf = io.StringIO()
        setup_logging(console=Console(file=buf, width=200))

        assert arithc.main([str(path), "--ir"]) == 0
        assert buf.getvalue() == ""
