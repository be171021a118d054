import logging
import os
import re
import time
import uuid
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

EXT_TO_CONTENT_TYPE = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
    "bmp": "image/bmp",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def content_type_for(filename: str) -> str:
    """Image media type for a stored photo, guessed from its extension."""
    ext = os.path.splitext(filename)[1].lower().lstrip(".")
    return EXT_TO_CONTENT_TYPE.get(ext, "image/jpeg")


def is_image_upload(content_type: Optional[str], filename: Optional[str]) -> bool:
    content_type = (content_type or "").strip().lower()
    ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
    if content_type and content_type != "application/octet-stream":
        return content_type.startswith("image/")
    # no usable content type: trust the extension when there is one
    return not ext or ext in EXT_TO_CONTENT_TYPE


def _safe_name(original_name: Optional[str]) -> str:
    name = os.path.basename((original_name or "").replace("\\", "/"))
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "photo.jpg"


class PhotoStore:
    """
    Flat directory of uploaded photos.

    Files are stored under generated names of the form
    ``<unix millis>-<token>-<original name>``; only those names are ever
    handed out, and lookups strip any directory component so a stored name
    can never point outside the root.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def ensure_root(self) -> None:
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created photo directory %s", self.root)

    def path(self, filename: str) -> Path:
        return self.root / os.path.basename(filename)

    def exists(self, filename: str) -> bool:
        return self.path(filename).is_file()

    def save(self, data: bytes, original_name: Optional[str]) -> str:
        """Write photo bytes and return the generated filename."""
        filename = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{_safe_name(original_name)}"
        with open(self.path(filename), "xb") as f:
            f.write(data)
        logger.debug("Saved photo %s (%d bytes)", filename, len(data))
        return filename

    def read(self, filename: str) -> Optional[bytes]:
        try:
            with open(self.path(filename), "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def remove(self, filename: str) -> None:
        try:
            os.unlink(self.path(filename))
            logger.debug("Removed photo %s", filename)
        except FileNotFoundError:
            pass
