from __future__ import annotations

import io
import logging
from typing import Iterator
from unittest.mock import patch

import pytest

import cygpkg.utils.logger as logger_module
from cygpkg.utils.logger import (
    ColoredFormatter,
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_to_level,
)


@pytest.fixture(autouse=True)
def clean_logger_state() -> Iterator[None]:
    """Reset the ``cygpkg`` logger before and after each test."""
    root = logging.getLogger("cygpkg")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    logger_module._logging_configured = False
    yield
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    logger_module._logging_configured = False


def make_record(level: int = logging.WARNING, msg: str = "mirror slow") -> logging.LogRecord:
    return logging.LogRecord("cygpkg.test", level, __file__, 1, msg, None, None)


@pytest.mark.unit
class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_plain_when_disabled(self) -> None:
        formatter = ColoredFormatter("%(levelname)s: %(message)s", use_color=False)

        assert formatter.format(make_record()) == "WARNING: mirror slow"

    def test_colors_level_name_on_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s: %(message)s")
        record = make_record()

        with patch.object(ColoredFormatter, "_should_use_color", return_value=True):
            output = formatter.format(record)

        assert output == "\033[33mWARNING\033[0m: mirror slow"
        assert record.levelname == "WARNING"

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")

        assert ColoredFormatter._should_use_color() is False


@pytest.mark.unit
class TestVerbosityToLevel:
    """Tests for verbosity_to_level."""

    @pytest.mark.parametrize(
        "verbose,level",
        [(-1, logging.WARNING), (0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_mapping(self, verbose: int, level: int) -> None:
        assert verbosity_to_level(verbose) == level


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging and disable_logging."""

    def test_writes_to_stream(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.INFO, stream=stream)

        get_logger("resolver").info("added %d package(s)", 3)

        assert stream.getvalue() == "INFO: added 3 package(s)\n"
        assert is_logging_configured()

    def test_level_filters(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, stream=stream)

        get_logger("manifest").info("hidden")
        get_logger("manifest").warning("shown")

        assert stream.getvalue() == "WARNING: shown\n"

    def test_verbose_format_includes_logger_name(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.DEBUG, verbose=True, stream=stream)

        get_logger("downloader").debug("fetching")

        assert "cygpkg.downloader - DEBUG - fetching" in stream.getvalue()

    def test_repeated_setup_replaces_handler(self) -> None:
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())

        assert len(logging.getLogger("cygpkg").handlers) == 1

    def test_disable(self) -> None:
        stream = io.StringIO()
        setup_logging(stream=stream)
        disable_logging()

        get_logger("http").error("dropped")

        assert stream.getvalue() == ""
        assert not is_logging_configured()


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger naming."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            (None, "cygpkg"),
            ("cygpkg", "cygpkg"),
            ("mirrors", "cygpkg.mirrors"),
            ("cygpkg.core.resolver", "cygpkg.core.resolver"),
        ],
    )
    def test_namespace(self, name, expected: str) -> None:
        assert get_logger(name).name == expected

    def test_null_handler_before_setup(self) -> None:
        logger = get_logger("unconfigured-component")

        handlers = []
        current = logger
        while current is not None and current.name.startswith("cygpkg"):
            handlers.extend(current.handlers)
            current = current.parent

        assert any(isinstance(h, logging.NullHandler) for h in handlers)

    def test_disable_leaves_null_handler_on_namespace_root(self) -> None:
        disable_logging()
        logger = get_logger("after-disable-component")

        assert not logger.handlers
        assert any(isinstance(h, logging.NullHandler) for h in logger.parent.handlers)
