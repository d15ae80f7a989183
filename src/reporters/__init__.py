"""Report writers for scan reports."""

from .base_reporter import BaseReporter
from .json_reporter import JSONReporter
from .text_reporter import TextReporter

REPORTERS = {
    "json": JSONReporter,
    "text": TextReporter,
}


def get_reporter(format: str, output_dir=None) -> BaseReporter:
    """Create the reporter for a format name.

    Raises:
        ValueError: If the format is unknown
    """
    try:
        reporter_class = REPORTERS[format]
    except KeyError:
        raise ValueError(f"Unsupported report format: {format}") from None
    return reporter_class(output_dir)


__all__ = [
    "BaseReporter",
    "JSONReporter",
    "TextReporter",
    "REPORTERS",
    "get_reporter",
]
