"""
Asset Repository – abstracts file I/O for uploads and static assets.

Reads uploaded files into memory and loads the logo (and any other
static image) from the assets directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

# Static assets shipped with the service (logos)
_ASSETS_ROOT = Path(os.getenv("NEXUSFORMS_ASSETS", str(Path(__file__).resolve().parent.parent / "assets")))
_LOGO_NAME = os.getenv("NEXUSFORMS_LOGO", "logo.png")


class AssetRepository:
    """Stateless helper for reading uploads and assets."""

    def __init__(self, root: Path | None = None, logo_name: str | None = None) -> None:
        self.root = Path(root) if root is not None else _ASSETS_ROOT
        self.logo_name = logo_name or _LOGO_NAME

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    @staticmethod
    async def read_uploaded_file(upload: UploadFile) -> bytes:
        """Read the full contents of a FastAPI UploadFile into memory."""
        return await upload.read()

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def load_bytes(self, name: str) -> Optional[bytes]:
        """Return the bytes of asset *name*, or ``None`` when it is absent."""
        path = self.root / name
        if not path.is_file():
            logger.warning("Asset not found: %s", path)
            return None
        return path.read_bytes()

    def load_logo(self) -> Optional[bytes]:
        return self.load_bytes(self.logo_name)
