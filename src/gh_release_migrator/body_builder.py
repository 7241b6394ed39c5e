"""Build target release notes from source release data.

Two transforms run in order on every release body:

1. ``add_source_provenance`` appends where and when the release came from.
2. ``BodyMapping.rewrite`` replaces user handles and URLs listed in a mapping file.
"""

from __future__ import annotations

import csv
import datetime as dt
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from .models import Release, RepositoryRef

    BodyTransform = Callable[[str, Release, RepositoryRef], str]

logger: logging.Logger = logging.getLogger(__name__)

PROVENANCE_SEPARATOR = "\n\n---\n\n"


def format_timestamp(timestamp: dt.datetime | None) -> str:
    """Format a timestamp as ``2024-01-15 10:30:45Z`` (UTC) or with its offset.

    Naive timestamps are assumed to be UTC. ``None`` formats as an empty string.
    """
    if timestamp is None:
        return ""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=dt.UTC)
    return timestamp.isoformat(sep=" ", timespec="seconds").replace("+00:00", "Z")


def add_source_provenance(
    body: str,
    release: Release,
    source: RepositoryRef,
    *,
    migrated_at: dt.datetime | None = None,
) -> str:
    """Append a provenance footer to a release body."""
    migrated_at = migrated_at or dt.datetime.now(dt.UTC)
    origin = f"[{source.full_name}]({release.html_url})" if release.html_url else source.full_name

    lines = [f"> **Migrated from** {origin}"]
    if release.author:
        lines.append(f"> **Original author:** @{release.author}")
    if release.created_at:
        lines.append(f"> **Created:** {format_timestamp(release.created_at)}")
    if release.published_at:
        lines.append(f"> **Published:** {format_timestamp(release.published_at)}")
    lines.append(f"> **Migrated:** {format_timestamp(migrated_at)}")

    footer = "\n".join(lines)
    if not body:
        return footer
    return body.rstrip() + PROVENANCE_SEPARATOR + footer


@dataclass
class BodyMapping:
    """Source to target replacements for handles (``@old``) and URLs/plain text."""

    replacements: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str | Path | None) -> BodyMapping:
        """Load ``source,target`` rows from a CSV file.

        A missing path yields an empty mapping. Blank rows, ``#`` comments and a
        ``source,target`` header row are skipped.

        Raises:
            OSError: If the file cannot be read
            ValueError: If a row does not have exactly two columns
        """
        if not path:
            return cls()

        replacements: dict[str, str] = {}
        with Path(path).open(encoding="utf-8", newline="") as f:
            for line_number, row in enumerate(csv.reader(f), start=1):
                cells = [cell.strip() for cell in row]
                if not cells or not any(cells) or cells[0].startswith("#"):
                    continue
                if len(cells) != 2:  # noqa: PLR2004
                    msg = f"Invalid mapping on line {line_number} of {path}: expected 'source,target'"
                    raise ValueError(msg)
                if line_number == 1 and [c.lower() for c in cells] == ["source", "target"]:
                    continue
                replacements[cells[0]] = cells[1]

        logger.debug(f"Loaded {len(replacements)} body mappings from {path}")
        return cls(replacements)

    def rewrite(self, body: str) -> str:
        """Apply every replacement, longest source first."""
        for source in sorted(self.replacements, key=len, reverse=True):
            target = self.replacements[source]
            if source.startswith("@"):
                # Handles only match whole: @bob must not rewrite @bobby
                pattern = rf"(?<![\w-]){re.escape(source)}(?![\w-])"
                body = re.sub(pattern, lambda _m, t=target: t, body)
            else:
                body = body.replace(source, target)
        return body


def default_body_transforms(mapping: BodyMapping) -> list[BodyTransform]:
    """The provenance transform followed by the mapping rewrite."""

    def provenance(body: str, release: Release, source: RepositoryRef) -> str:
        return add_source_provenance(body, release, source)

    def rewrite(body: str, _release: Release, _source: RepositoryRef) -> str:
        return mapping.rewrite(body)

    return [provenance, rewrite]
