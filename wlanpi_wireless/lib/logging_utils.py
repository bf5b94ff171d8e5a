import logging
import os
import sys

from wlanpi_wireless.constants import IS_DEV

_TRUTHY = ("1", "true", "yes")
_IDE_MARKERS = ("PYCHARM_HOSTED", "VSCODE_PID", "TERM_PROGRAM")

LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARN,
    "warning": logging.WARN,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in _TRUTHY


def supports_color():
    """
    Returns True if the running system's terminal supports color, and False otherwise.

    FORCE_COLOR and NO_COLOR win over detection. IDE consoles are treated as
    color capable even when stdout is not a TTY.
    """
    if _env_flag("FORCE_COLOR"):
        return True
    if _env_flag("NO_COLOR"):
        return False
    if sys.platform == "Pocket PC":
        return False
    if sys.platform == "win32" and "ANSICON" not in os.environ:
        return False

    isatty = getattr(sys.stdout, "isatty", None)
    if isatty is not None and isatty():
        return True
    return any(marker in os.environ for marker in _IDE_MARKERS)


# https://talyian.github.io/ansicolors/
class CustomFormatter(logging.Formatter):
    """Colors each record by level; plain text when the terminal can't show it."""

    red = "\x1b[31;20m"
    white = "\x1b[38;5;255m"
    dark_grey = "\x1b[38;5;244m"
    orange = "\x1b[38;5;208m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = (
        "%(asctime)s | %(levelname)8s | %(name)s: %(message)s (%(filename)s:%(lineno)d)"
    )

    USE_COLOR = supports_color()

    LEVEL_COLORS = {
        logging.DEBUG: dark_grey,
        logging.INFO: white,
        logging.WARNING: orange,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        log_fmt = self.fmt
        color = self.LEVEL_COLORS.get(record.levelno)
        if self.USE_COLOR and color:
            log_fmt = color + self.fmt + self.reset
        return logging.Formatter(log_fmt).format(record)


def create_console_handler(level=logging.DEBUG):
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(CustomFormatter())
    return handler


def env_level(name: str, default: int = logging.INFO) -> int:
    """Level named by environment variable name, or default if unset or unknown."""
    value = os.environ.get(name)
    if value is None:
        return default
    return LEVEL_NAMES.get(value.strip().lower(), default)


def setup_logging(level=logging.INFO, handlers=None):
    """
    Configures the root logger with the colored console handler.

    WLANPI_WIRELESS_LOG_LEVEL overrides level; WLANPI_WIRELESS_BUS_LOG_LEVEL
    sets the message bus logger on its own.
    """
    if IS_DEV:
        level = logging.DEBUG
    level = env_level("WLANPI_WIRELESS_LOG_LEVEL", level)

    if handlers is None:
        handlers = [create_console_handler(level)]
    logging.basicConfig(encoding="utf-8", level=level, handlers=handlers, force=True)

    # The monitor logs every line read from wpa_cli at DEBUG
    component_levels = {
        "wlanpi_wireless.lib.wpa_control.monitor": (
            logging.DEBUG if IS_DEV else max(level, logging.INFO)
        ),
        "wlanpi_wireless.lib.wpa_control.channel": level,
        "wlanpi_wireless.lib.wireless.wireless": level,
        "wlanpi_wireless.event_bus": env_level("WLANPI_WIRELESS_BUS_LOG_LEVEL", level),
    }
    for name, component_level in component_levels.items():
        logging.getLogger(name).setLevel(component_level)
