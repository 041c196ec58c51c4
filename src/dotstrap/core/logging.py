"""Logging for dotstrap: a rich handler on the ``dotstrap`` logger tree.

Modules log through :func:`get_logger` and pass context as keyword
arguments. Context is rendered as a dim ``[key=value ...]`` suffix, with
home-relative paths shortened to ``~`` and credential values masked so a
``--verbose`` transcript can be pasted into a bug report.
"""

import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

ROOT_LOGGER = "dotstrap"

# Libraries whose debug chatter only matters under --trace
NOISY_LOGGERS = ("aiohttp", "asyncio")

# Keyword arguments understood by logging itself; everything else is context
_STDLIB_KWARGS = {"exc_info", "stack_info", "stacklevel", "extra"}

_SECRET_KEYS = {"password", "passphrase", "secret", "token"}
MASK = "********"


def format_value(key: str, value: Any, home: str = "") -> str:
    """Render one context value for a log line.

    Args:
        key: Context key, used to recognise credentials
        value: Value passed by the caller
        home: Home directory to abbreviate as ``~``

    Returns:
        Markup-safe text for the value
    """
    if key in _SECRET_KEYS:
        return MASK
    text = str(value)
    if home and (text == home or text.startswith(home.rstrip("/") + "/")):
        text = "~" + text[len(home.rstrip("/")) :]
    return escape(text)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that formats kwargs as structured context data.

    Example:
        logger = get_logger(__name__)
        logger.info("Installed package", package="vim", manager="yum")
        # Output: Installed package [manager=yum package=vim]
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = {k: v for k, v in kwargs.items() if k not in _STDLIB_KWARGS}
        clean_kwargs = {k: v for k, v in kwargs.items() if k in _STDLIB_KWARGS}

        if context:
            home = self.extra.get("home", "") if self.extra else ""
            context_str = " ".join(
                f"{k}={format_value(k, v, home)}" for k, v in sorted(context.items())
            )
            msg = f"{msg} [dim][[/dim]{context_str}[dim]][/dim]"

        return msg, clean_kwargs


def _replace_rich_handler(logger: logging.Logger, handler: RichHandler | None) -> None:
    for old in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(old)
    if handler is not None:
        logger.addHandler(handler)


def setup_logging(
    verbose: bool = False, trace: bool = False, console: Console | None = None
) -> logging.Logger:
    """Attach a rich handler to the ``dotstrap`` logger.

    The root logger is left alone so that libraries embedding dotstrap
    keep their own configuration. Calling this again replaces the handler.

    Args:
        verbose: Enable debug logging
        trace: Debug logging plus source locations and library debug output
        console: Console to write to; defaults to stderr

    Returns:
        The configured ``dotstrap`` logger
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=trace,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=trace,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(ROOT_LOGGER)
    _replace_rich_handler(logger, handler)
    logger.setLevel(logging.DEBUG if verbose or trace else logging.INFO)
    logger.propagate = False

    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.DEBUG if trace else logging.WARNING)
        _replace_rich_handler(noisy, handler if trace else None)

    return logger


def get_logger(name: str = "") -> StructuredLoggerAdapter:
    """Get a structured logger under the ``dotstrap`` tree.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger adapter that accepts context data as keyword arguments
    """
    if not name or not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER
    return StructuredLoggerAdapter(logging.getLogger(name), {"home": str(Path.home())})
