"""Unit tests for logging setup."""

import io
import json
import logging
import re
from collections.abc import Iterator

import pytest

from stencil.utils.logging import (
    LEVEL_COLORS,
    LogMode,
    configure_from_cli,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[None]:
    """Drop handlers installed by a test."""
    yield
    logger = logging.getLogger("stencil")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_human_mode(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.HUMAN, logging.INFO, stream)

        get_logger().info("hello")
        get_logger("stencil.templates").debug("hidden")

        assert stream.getvalue() == "[INFO] hello\n"

    def test_json_mode_structured(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.JSON, logging.DEBUG, stream)

        get_logger().structured(logging.INFO, "Rendered template", template="a.txt")

        entry = json.loads(stream.getvalue())
        assert entry["level"] == "INFO"
        assert entry["msg"] == "Rendered template"
        assert entry["template"] == "a.txt"

    def test_child_loggers_share_handler(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.HUMAN, logging.DEBUG, stream)

        logging.getLogger("stencil.templates.renderer").debug("opened")

        assert "opened" in stream.getvalue()

    def test_verbose_mode_shows_time(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.VERBOSE, logging.DEBUG, stream)

        get_logger().debug("Opening template: a.txt")

        pattern = r"\[DEBUG\]\[\d\d:\d\d:\d\d\] Opening template: a.txt\n"
        assert re.fullmatch(pattern, stream.getvalue())

    def test_text_mode_drops_structured_fields(self) -> None:
        stream = io.StringIO()
        setup_logging(LogMode.HUMAN, logging.DEBUG, stream)

        get_logger().structured(logging.DEBUG, "Rendered template", charset="utf-8")

        assert stream.getvalue() == "[DEBUG] Rendered template\n"

    def test_colors_only_on_terminal(self) -> None:
        """Test that level prefixes are colored when the stream is a TTY."""

        class Terminal(io.StringIO):
            def isatty(self) -> bool:
                return True

        stream = Terminal()
        setup_logging(LogMode.HUMAN, logging.INFO, stream)

        get_logger().warning("careful")

        assert stream.getvalue() == f"{LEVEL_COLORS[logging.WARNING]}[WARNING]\033[0m careful\n"


class TestConfigureFromCli:
    """Tests for configure_from_cli()."""

    @pytest.mark.parametrize(
        ("verbose", "quiet", "level"),
        [
            (False, False, logging.INFO),
            (True, False, logging.DEBUG),
            (False, True, logging.WARNING),
        ],
    )
    def test_levels(self, verbose: bool, quiet: bool, level: int) -> None:
        configure_from_cli(verbose=verbose, quiet=quiet)

        assert logging.getLogger("stencil").level == level
