"""
Locates the face classifier artifact: project models/ directory first, then the
Haar cascades bundled with opencv-python.
"""

from __future__ import annotations

from pathlib import Path

import cv2

from core.errors import ResourceLoadError

# Directory for project-provided models (next to project root)
_MODELS_DIR = Path(__file__).resolve().parent.parent / "models"


def _bundled_cascades_dir() -> Path | None:
    data = getattr(cv2, "data", None)
    root = getattr(data, "haarcascades", None)
    return Path(root) if root else None


def get_classifier_path(filename: str, models_dir: Path | None = None) -> Path:
    """Return the path to a classifier file; raise ResourceLoadError if it is nowhere."""
    search = [models_dir or _MODELS_DIR]
    bundled = _bundled_cascades_dir()
    if bundled is not None:
        search.append(bundled)
    for directory in search:
        path = directory / filename
        if path.is_file():
            return path
    raise ResourceLoadError(
        f"Classifier {filename!r} not found. Searched: {[str(d) for d in search]}"
    )
