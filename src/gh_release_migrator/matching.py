"""Equivalence checks between source and target objects.

A target release is equivalent to a source release when tag, name and target
commitish all match. An asset is already transferred when the target release
has an asset with the same name and byte size. Content is never hashed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Release


def release_matches(existing: Release, release: Release) -> bool:
    return (
        existing.tag_name == release.tag_name
        and existing.name == release.name
        and existing.target_commitish == release.target_commitish
    )


def asset_exists(release: Release | None, name: str, size: int) -> bool:
    if release is None:
        return False
    return any(asset.name == name and asset.size == size for asset in release.assets)
