"""
Logging filters for cloud_data.

Request headers carry the user's bearer token; these filters keep it out of
log output.
"""

import logging
import re
from typing import List, Pattern


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials in log messages."""

    MASK = "***MASKED***"

    def __init__(self) -> None:
        """Initialize sensitive data filter."""
        super().__init__()

        self.patterns: List[Pattern[str]] = [
            re.compile(r"(bearer\s+)([^\s'\",}]+)", re.IGNORECASE),
            re.compile(
                r"""(authorization['"]?\s*[:=]\s*['"]?)(?!bearer\s)([^\s'",}]+)""",
                re.IGNORECASE,
            ),
            re.compile(
                r"""((?:auth_?token|api[_-]?key|secret)['"]?\s*[:=]\s*['"]?)([^\s'",}]+)""",
                re.IGNORECASE,
            ),
        ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask credentials in the record, always letting it through."""
        message = record.getMessage()

        masked = message
        for pattern in self.patterns:
            masked = pattern.sub(lambda m: f"{m.group(1)}{self.MASK}", masked)

        if masked != message:
            record.msg = masked
            record.args = ()

        return True

