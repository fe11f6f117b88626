"""Local-disk storage for uploaded images."""
from __future__ import annotations

import os
import time
from pathlib import Path

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .errors import ValidationError

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "webp"}
ALLOWED_MIMETYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
CATEGORIES = ("users", "salons", "generic")


def is_allowed_image(file: FileStorage) -> bool:
    filename = file.filename or ""
    if "." not in filename:
        return False
    extension = filename.rsplit(".", 1)[1].lower()
    return extension in ALLOWED_EXTENSIONS and (file.mimetype or "").lower() in ALLOWED_MIMETYPES


class LocalBlobStore:
    """Writes files under ``root/<category>/`` and hands back their public URL."""

    def __init__(self, root: str | os.PathLike, base_url: str = "/uploads"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def save(self, file: FileStorage | None, category: str, prefix: str) -> str:
        if file is None or not file.filename:
            raise ValidationError("No file uploaded", error="no_file_provided")
        if category not in CATEGORIES:
            raise ValueError(f"unknown upload category: {category}")
        if not is_allowed_image(file):
            raise ValidationError("Only image files are allowed!", error="invalid_file_type")

        extension = file.filename.rsplit(".", 1)[1].lower()
        # Millisecond timestamps keep repeated uploads from overwriting each other.
        filename = secure_filename(f"{prefix}_{time.time_ns() // 1_000_000}.{extension}")
        directory = self.root / category
        directory.mkdir(parents=True, exist_ok=True)
        file.save(directory / filename)
        return f"{self.base_url}/{category}/{filename}"
