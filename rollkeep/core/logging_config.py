"""
Logging setup shared by the rollkeep CLI and web server.

Console records are marked and colored by level and written to stderr, so
command output on stdout stays clean. An optional log file gets plain text
at DEBUG regardless of the console level.
"""

import logging
import sys
from typing import Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

DEFAULT_FORMAT = '%(asctime)s %(levelname)-8s [%(name)s] %(message)s'

# Request logs from the development server drown out roll logs
NOISY_LOGGERS = ('werkzeug',)

LEVEL_STYLES = {
    logging.DEBUG: (Fore.CYAN, '·'),
    logging.INFO: (Fore.GREEN, '✓'),
    logging.WARNING: (Fore.YELLOW, '!'),
    logging.ERROR: (Fore.RED, '✗'),
    logging.CRITICAL: (Fore.RED + Style.BRIGHT, '✗'),
}


def short_name(name: str) -> str:
    """'rollkeep.modules.dice.service' -> 'dice.service'"""
    for prefix in ('rollkeep.modules.', 'rollkeep.'):
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


class ColoredFormatter(logging.Formatter):
    """Console formatter: level marker in color, package prefix dropped."""

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt or DEFAULT_FORMAT)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; the file handler sees the same record
        shown = logging.makeLogRecord(record.__dict__)
        shown.name = short_name(record.name)
        line = super().format(shown)

        color, marker = LEVEL_STYLES.get(record.levelno, ('', ' '))
        if not self.use_colors:
            return f"{marker} {line}"
        return f"{color}{marker}{Style.RESET_ALL} {line}"


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    use_colors: Optional[bool] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path that also receives every DEBUG record
        format_string: Override for DEFAULT_FORMAT
        use_colors: Color the console; defaults to whether the stream is a TTY
        stream: Console stream, stderr by default

    Raises:
        ValueError: If the level name is unknown
    """
    level_no = logging.getLevelName(str(level).upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level '{level}'")

    stream = stream or sys.stderr
    if use_colors is None:
        use_colors = hasattr(stream, 'isatty') and stream.isatty()
    if use_colors:
        just_fix_windows_console()

    root = logging.getLogger()
    root.handlers.clear()

    console = logging.StreamHandler(stream)
    console.setLevel(level_no)
    console.setFormatter(ColoredFormatter(format_string, use_colors=use_colors))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
        root.addHandler(file_handler)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(level_no)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_no, logging.WARNING))

    return root


__all__ = ['setup_logging', 'ColoredFormatter', 'short_name', 'DEFAULT_FORMAT']
