import json
import logging
import os
import sys

DATEFMT = "%Y-%m-%d %H:%M:%S"

# The log file gets the logger name as well, stderr stays short.
_CONSOLE_FMT = "[%(asctime)s] [%(levelname)s] %(message)s"
_FILE_FMT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"

# Chatty below WARNING; only let them through with -v.
_NOISY = ("urllib3", "requests", "charset_normalizer")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, msg, plus exc on errors."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def resolve_level(debug: bool = False, level: str | None = None) -> int:
    """-v wins, then $LOG_LEVEL, then the config file, then INFO."""
    if debug:
        return logging.DEBUG
    name = os.getenv("LOG_LEVEL") or level or "INFO"
    resolved = logging.getLevelName(name.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _formatter(debug_format: str, fmt: str) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=DATEFMT)
    return logging.Formatter(fmt, datefmt=DATEFMT)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure the root logger for a blogsync command.

    Records go to stderr; stdout is reserved for reports and JSON output.
    With *log_file* they are appended there too.

    Args:
        debug: The ``-v`` flag; forces DEBUG.
        log_file: Optional path to append records to.
        debug_format: "text" or "json".
        level: ``logging.level`` from the config file.
    """
    log_level = resolve_level(debug, level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(debug_format, _CONSOLE_FMT))
    handlers: list[logging.Handler] = [console]
    if log_file:
        to_file = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        to_file.setFormatter(_formatter(debug_format, _FILE_FMT))
        handlers.append(to_file)

    logging.basicConfig(level=log_level, handlers=handlers)

    quiet = logging.DEBUG if log_level == logging.DEBUG else logging.WARNING
    for name in _NOISY:
        logging.getLogger(name).setLevel(quiet)
