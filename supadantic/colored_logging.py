"""
Colored logging formatter for supadantic.

Gives the sync output visual structure: fetch progress, skipped or removed
tables and the final summary each get their own color.
"""

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """
    Logging formatter that adds ANSI color codes to log messages.

    Errors and warnings are always colored by level; INFO and DEBUG
    messages are colored by the marker they start with.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    # Colors for messages written through the log_* helpers below
    SPECIAL_COLORS = {
        'success': '\033[92m',    # Bright Green
        'progress': '\033[94m',   # Bright Blue
        'highlight': '\033[96m',  # Bright Cyan
    }

    SUCCESS_MARKER = "✓"
    PROGRESS_MARKER = "→"
    HIGHLIGHT_MARKER = "•"
    SECTION_CHAR = "="

    RESET = '\033[0m'
    BOLD = '\033[1m'

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True, stream=None):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log format string (uses default if None)
            use_colors: Whether to use colors; ignored when the stream is not a TTY
            stream: Stream the handler writes to (defaults to stderr)
        """
        super().__init__(fmt or "%(levelname)s: %(message)s")
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)
        if not self.use_colors:
            return formatted_message

        color = self._color_for(record)
        if not color:
            return formatted_message
        return f"{color}{formatted_message}{self.RESET}"

    def _color_for(self, record: logging.LogRecord) -> str:
        if record.levelname in ('ERROR', 'CRITICAL', 'WARNING'):
            return self.COLORS[record.levelname]

        message = record.getMessage().lstrip()
        if message.startswith(self.SUCCESS_MARKER):
            return self.SPECIAL_COLORS['success'] + self.BOLD
        if message.startswith(self.PROGRESS_MARKER):
            return self.SPECIAL_COLORS['progress']
        if message.startswith(self.HIGHLIGHT_MARKER):
            return self.SPECIAL_COLORS['highlight']
        if message.startswith(self.SECTION_CHAR * 3):
            return self.BOLD + self.SPECIAL_COLORS['highlight']
        if record.levelname == 'DEBUG':
            return self.COLORS['DEBUG']
        # Plain INFO messages stay uncolored
        return ''


def setup_colored_logging(level: int = logging.INFO, use_colors: bool = True) -> None:
    """
    Set up colored logging on the root logger.

    Args:
        level: Logging level (default: INFO)
        use_colors: Whether to use colors (default: True)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers to avoid duplicate output
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors, stream=sys.stderr))
    console_handler.setLevel(level)

    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)


def get_colored_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# Convenience functions for special message types
def log_success(logger: logging.Logger, message: str) -> None:
    logger.info(f"{ColoredFormatter.SUCCESS_MARKER} {message}")


def log_progress(logger: logging.Logger, message: str) -> None:
    logger.info(f"{ColoredFormatter.PROGRESS_MARKER} {message}")


def log_highlight(logger: logging.Logger, message: str) -> None:
    logger.info(f"{ColoredFormatter.HIGHLIGHT_MARKER} {message}")


def log_section(logger: logging.Logger, section_name: str) -> None:
    """Log a section header framed by separator lines."""
    separator = ColoredFormatter.SECTION_CHAR * 60
    logger.info(separator)
    logger.info(f"  {section_name.upper()}")
    logger.info(separator)
