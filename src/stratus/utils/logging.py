"""Secure logging utilities for Stratus.

Provides a credential scrubbing filter so that provider errors which echo
request headers, connection strings or key material never reach a log file
in clear text.
"""

import logging
import re
import sys
from typing import Any

_JSON_SECRET_KEYS = (
    "token",
    "access_token",
    "refresh_token",
    "private_key",
    "api_key",
    "password",
    "client_secret",
    "account_key",
)

_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Authorization: Bearer eyJ0eXAi...
    (re.compile(r"bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "[REDACTED]"),
    # "token": "value"
    (
        re.compile(r'"(' + "|".join(_JSON_SECRET_KEYS) + r')"\s*:\s*"[^"]*"'),
        r'"\1": "[REDACTED]"',
    ),
    # Storage / Service Bus connection strings
    (
        re.compile(r"(AccountKey|SharedAccessKey|SharedAccessSignature)=([^;\s]+)"),
        r"\1=[REDACTED]",
    ),
    # token=value style parameters
    (
        re.compile(r"\b(token|api_key|password|client_secret|sig)=([^\s&,;]+)"),
        r"\1=[REDACTED]",
    ),
    # Long base64-like blobs (keys, certificates). "/" is left out so that
    # resource ids are not mistaken for key material.
    (re.compile(r"[A-Za-z0-9+]{40,}={0,2}"), "[REDACTED_BASE64]"),
]


class CredentialScrubbingFilter(logging.Filter):
    """Logging filter that redacts credentials from log records."""

    @staticmethod
    def scrub(text: str) -> str:
        """Redact credentials from a string.

        Args:
            text: Text that may contain credentials

        Returns:
            Text with credentials replaced by redaction markers
        """
        for pattern, replacement in _PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """Scrub the record message and arguments in place.

        Args:
            record: Log record to scrub

        Returns:
            Always True (records are never dropped)
        """
        if isinstance(record.msg, str):
            record.msg = self.scrub(record.msg)

        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(self._scrub_arg(arg) for arg in record.args)
            elif isinstance(record.args, dict):
                record.args = {k: self._scrub_arg(v) for k, v in record.args.items()}

        return True

    def _scrub_arg(self, arg: Any) -> Any:
        if isinstance(arg, str):
            return self.scrub(arg)
        return arg


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    enable_credential_scrubbing: bool = True,
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a file to log to in addition to stderr
        enable_credential_scrubbing: Attach CredentialScrubbingFilter to handlers
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Replace handlers from earlier setup calls
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        if enable_credential_scrubbing:
            handler.addFilter(CredentialScrubbingFilter())
        root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
