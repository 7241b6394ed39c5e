"""Asset transfer through local scratch storage.

One asset at a time: download into ``<scratch>/<asset name>``, upload to the
target release, delete the scratch file. A failed upload leaves the file in
place for inspection.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .models import Asset, Release
    from .protocols import ReleaseSource, ReleaseTarget

logger: logging.Logger = logging.getLogger(__name__)

FALLBACK_CONTENT_TYPE: Final[str] = "application/octet-stream"


def guess_content_type(asset: Asset) -> str:
    """The asset's declared content type, else one inferred from its extension."""
    if asset.content_type:
        return asset.content_type
    guessed, _ = mimetypes.guess_type(asset.name)
    return guessed or FALLBACK_CONTENT_TYPE


class AssetTransfer:
    """Moves assets from a source release to a target release."""

    _source: ReleaseSource
    _target: ReleaseTarget
    _scratch_dir: Path

    def __init__(self, source: ReleaseSource, target: ReleaseTarget, scratch_dir: str | Path = "tmp") -> None:
        self._source = source
        self._target = target
        self._scratch_dir = Path(scratch_dir)

    @property
    def scratch_dir(self) -> Path:
        return self._scratch_dir

    def scratch_path(self, asset: Asset) -> Path:
        # Asset names never contain path separators on GitHub, but don't trust that
        return self._scratch_dir / Path(asset.name).name

    def download(self, asset: Asset) -> Path:
        """Download an asset's bytes into scratch storage.

        Raises:
            TransferError: If the source host does not answer with success
            OSError: If the scratch directory or file cannot be written
        """
        self._scratch_dir.mkdir(parents=True, exist_ok=True)
        path = self.scratch_path(asset)
        logger.debug(f"Downloading {asset.browser_download_url} to {path}")
        self._source.download(asset.browser_download_url, path)
        return path

    def upload(self, asset: Asset, path: Path, target_release: Release) -> None:
        """Upload a scratch file and delete it once the host has accepted it.

        Raises:
            TransferError: If the upload is rejected; the scratch file is kept
            OSError: If the scratch file cannot be read or removed
        """
        self._target.upload_asset(
            target_release.upload_url,
            path,
            name=asset.name,
            label=asset.label,
            content_type=guess_content_type(asset),
        )
        path.unlink()
        logger.debug(f"Uploaded {asset.name} and removed {path}")

    def transfer(self, asset: Asset, target_release: Release) -> None:
        """Download then upload one asset."""
        path = self.download(asset)
        self.upload(asset, path, target_release)
