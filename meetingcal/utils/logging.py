"""Logging configuration and setup utilities."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from ..config.settings import LoggingSettings, MeetingCalSettings

# Custom log level between INFO(20) and DEBUG(10)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

LOGGER_NAMESPACE = "meetingcal"


def verbose(self: logging.Logger, message: Any, *args: Any, **kwargs: Any) -> None:
    """Add verbose() method to Logger class for detailed diagnostic logging.

    Logs at the custom VERBOSE level (15): more detail than INFO, less than DEBUG.

    Example:
        >>> logger = logging.getLogger(__name__)
        >>> logger.verbose("Expanded %d meetings", meeting_count)
    """
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


# Add verbose method to all Logger instances
logging.Logger.verbose = verbose  # type: ignore[attr-defined]


def get_log_level(level_name: str) -> int:
    """Get numeric log level from string name, including custom VERBOSE level.

    Args:
        level_name: Log level name (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL),
            case insensitive

    Returns:
        Numeric log level, INFO for unrecognized names
    """
    level_name = level_name.upper()
    if level_name == "VERBOSE":
        return VERBOSE
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        return logging.INFO
    return level


class AutoColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when stderr is a color terminal.

    ``color_mode`` is ``"truecolor"`` (bright palette), ``"basic"`` (8-color
    palette) or ``"none"``.
    """

    # ANSI color number per level; bright palette adds 60
    LEVEL_COLORS = {
        "DEBUG": 35,
        "VERBOSE": 32,
        "INFO": 34,
        "WARNING": 33,
        "ERROR": 31,
        "CRITICAL": 31,
    }
    BOLD_LEVELS = frozenset({"CRITICAL"})
    RESET = "\033[0m"

    def __init__(self, *args: Any, enable_colors: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.enable_colors = enable_colors
        self.color_mode = self._detect_color_support() if enable_colors else "none"

    @staticmethod
    def _detect_color_support() -> str:
        stream = sys.stderr
        if not hasattr(stream, "isatty") or not stream.isatty():
            return "none"

        term = os.environ.get("TERM", "").lower()
        colorterm = os.environ.get("COLORTERM", "").lower()

        if term == "dumb":
            return "none"
        if colorterm in ("truecolor", "24bit") or "256color" in term:
            return "truecolor"
        if "color" in term:
            return "basic"
        return "none"

    def _level_prefix(self, level_name: str) -> str:
        color = self.LEVEL_COLORS[level_name]
        if self.color_mode == "truecolor":
            color += 60
        prefix = f"\033[{color}m"
        if level_name in self.BOLD_LEVELS:
            prefix += "\033[1m"
        return prefix

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if self.color_mode == "none" or record.levelname not in self.LEVEL_COLORS:
            return formatted
        colored = f"{self._level_prefix(record.levelname)}{record.levelname}{self.RESET}"
        return formatted.replace(record.levelname, colored, 1)


class TimestampedFileHandler(logging.FileHandler):
    """Handler that creates timestamped log files per execution."""

    def __init__(
        self, log_dir: Union[str, Path], prefix: str = LOGGER_NAMESPACE, max_files: int = 5
    ) -> None:
        self.log_dir = Path(log_dir)
        self.prefix = prefix
        self.max_files = max_files

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = self.log_dir / f"{prefix}_{timestamp}.log"

        self.log_dir.mkdir(parents=True, exist_ok=True)
        super().__init__(str(log_path), encoding="utf-8")

        self.cleanup_old_files()

    def cleanup_old_files(self) -> None:
        """Remove log files beyond max_files limit, keeping most recent."""
        log_files = list(self.log_dir.glob(f"{self.prefix}_*.log"))

        if len(log_files) > self.max_files:
            log_files.sort(key=lambda f: f.stat().st_mtime, reverse=True)
            for old_file in log_files[self.max_files :]:
                try:
                    old_file.unlink()
                except OSError as e:
                    logging.getLogger(__name__).warning(f"Could not remove old log file {old_file}: {e}")


CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT_WITH_FUNCTION = (
    "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
)
THIRD_PARTY_LOGGERS = ("dateutil", "pydantic", "yaml")


def _apply_logging_settings(log_settings: "LoggingSettings", default_log_dir: Path) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(logging.DEBUG)  # Handlers filter
    logger.handlers.clear()

    if log_settings.console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(get_log_level(log_settings.console_level))
        console_handler.setFormatter(
            AutoColoredFormatter(
                CONSOLE_FORMAT, datefmt="%H:%M:%S", enable_colors=log_settings.console_colors
            )
        )
        logger.addHandler(console_handler)

    if log_settings.file_enabled:
        file_handler = TimestampedFileHandler(
            log_dir=log_settings.file_directory or default_log_dir,
            prefix=log_settings.file_prefix,
            max_files=log_settings.max_log_files,
        )
        file_handler.setLevel(get_log_level(log_settings.file_level))
        file_format = FILE_FORMAT_WITH_FUNCTION if log_settings.include_function_names else FILE_FORMAT
        file_handler.setFormatter(logging.Formatter(file_format, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

        logger.debug(f"Logging to file: {file_handler.baseFilename}")

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    third_party_level = get_log_level(log_settings.third_party_level)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return logger


def configure_logging(settings: "MeetingCalSettings") -> logging.Logger:
    """Set up the ``meetingcal`` logger from application settings.

    Adds a colored console handler and, when enabled, a timestamped file
    handler (in ``data_dir/logs`` unless a directory is configured).
    Existing handlers on the namespace logger are replaced.

    Args:
        settings: Application settings carrying a ``logging`` section

    Returns:
        The configured namespace logger
    """
    return _apply_logging_settings(settings.logging, settings.data_dir / "logs")


def setup_logging(
    log_level: str = "INFO", log_dir: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """Set up logging without loading application settings.

    For library use, where no YAML or environment configuration applies.

    Args:
        log_level: Console level (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Also write timestamped DEBUG log files here

    Returns:
        The configured namespace logger
    """
    from ..config.settings import LoggingSettings

    log_settings = LoggingSettings(
        console_level=log_level,
        file_enabled=log_dir is not None,
        file_directory=str(log_dir) if log_dir is not None else None,
    )
    logger = _apply_logging_settings(log_settings, Path.cwd() / "logs")
    logger.debug(f"Logging initialized at {log_level} level")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``meetingcal`` namespace.

    Example:
        >>> get_logger("calendar.view").name
        'meetingcal.calendar.view'
    """
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def apply_command_line_overrides(
    settings: "MeetingCalSettings", args: Any
) -> "MeetingCalSettings":
    """Apply command-line argument overrides to logging settings.

    Priority: Command-line > Environment > YAML > Defaults. Modifies the
    settings in place and returns them.
    """
    if getattr(args, "log_level", None):
        settings.logging.console_level = args.log_level
        settings.logging.file_level = args.log_level

    if getattr(args, "verbose", False):
        settings.logging.console_level = "VERBOSE"
        settings.logging.file_level = "VERBOSE"

    if getattr(args, "quiet", False):
        settings.logging.console_level = "ERROR"

    if getattr(args, "log_dir", None):
        settings.logging.file_enabled = True
        settings.logging.file_directory = args.log_dir

    if getattr(args, "no_log_colors", False):
        settings.logging.console_colors = False

    return settings
