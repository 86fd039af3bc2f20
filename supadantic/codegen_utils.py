import logging
from pathlib import Path
from typing import Iterable, Union

from black import (
    FileMode,
    format_str as black_format_str,
    NothingChanged as BlackNothingChanged,
)

from .constants import GenerationOptions


logger = logging.getLogger(__name__)

BLACK_FORMATTER_MODE = FileMode(line_length=GenerationOptions.LINE_LENGTH)


def format_python_code_using_black(filepath: Union[str, Path], code_string: str) -> str:
    """Formats the given Python code using Black."""
    try:
        formatted_code = black_format_str(code_string, mode=BLACK_FORMATTER_MODE)
        logger.debug(f"Formatted code using Black: {filepath}")
        return formatted_code
    except BlackNothingChanged:
        logger.debug(f"Black formatter did not change the code: {filepath}")
        return code_string
    except Exception as e:
        # Generated code stays usable when black rejects it; keep the log concise
        logger.error(f"Could not format Python code using Black: {e}", exc_info=False)
        logger.warning("Writing unformatted Python code due to Black error.")
        return code_string


def with_header(code_string: str, header_lines: Iterable[str]) -> str:
    """Prefix generated code with comment lines (``ast.unparse`` drops comments)."""
    header = "\n".join(header_lines)
    return f"{header}\n\n{code_string.lstrip()}"
