"""
Utility functions for the release migration tool.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_PASS_PATH_PATTERN = re.compile(r"[A-Za-z0-9_-]+(?:/[A-Za-z0-9_-]+)*")


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path format is invalid."""


def setup_logging(*, verbose: bool = False, log_file: str | None = "migration.log") -> None:
    """Log to stderr and, unless ``log_file`` is None, append to ``log_file``."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT, handlers=handlers)


def get_pass_value(pass_path: str) -> str:
    """Read a secret from the ``pass`` password store.

    Runs non-interactively, so a locked GPG key surfaces as a PassError.

    Raises:
        ValueError: If ``pass_path`` is not a plain slash-separated entry name
        InvalidPassPathError: If the entry does not exist
        PassError: On any other ``pass`` failure
    """
    if not _PASS_PATH_PATTERN.fullmatch(pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)

    try:
        result = subprocess.run(  # noqa: S603
            ["pass", "show", pass_path], capture_output=True, text=True, check=True  # noqa: S607
        )
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.strip()
        if "not in the password store" in stderr:
            msg = f"Pass entry '{pass_path}' does not exist"
            raise InvalidPassPathError(msg) from e
        msg = f"pass show {pass_path} failed. Return code: {e.returncode}. Error: {stderr}"
        raise PassError(msg) from e

    # Multi-line entries keep the secret on the first line
    return result.stdout.splitlines()[0].strip() if result.stdout else ""


def read_repository_list(path: str | Path) -> list[str]:
    """Read repository names from a file, one per line.

    Entries may be ``name`` or ``owner/name``. Blank lines and lines starting
    with ``#`` are ignored.

    Raises:
        OSError: If the file cannot be read
    """
    repositories: list[str] = []
    with Path(path).open(encoding="utf-8") as f:
        for line in f:
            entry = line.strip()
            if not entry or entry.startswith("#"):
                continue
            repositories.append(entry)
    return repositories
