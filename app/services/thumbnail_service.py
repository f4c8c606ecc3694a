"""Thumbnail resolution for a freshly staged video.

Order: a client-supplied data URL if it decodes, otherwise a frame pulled
from the video, otherwise nothing. Nothing in here fails an upload.
"""
import base64
import binascii
import logging
import re

from app.core.exceptions import ExtractionError
from app.services.frame_extractor import FrameExtractor
from app.services.storage_service import LocalStorage

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:image/([A-Za-z0-9.+-]+);base64,(.+)$", re.DOTALL)

SUPPORTED_IMAGE_SUBTYPES = {"jpeg", "jpg", "png", "gif", "webp", "bmp"}

# leading bytes of each encoding
IMAGE_SIGNATURES = {
    "jpeg": (b"\xff\xd8\xff",),
    "jpg": (b"\xff\xd8\xff",),
    "png": (b"\x89PNG\r\n\x1a\n",),
    "gif": (b"GIF87a", b"GIF89a"),
    "bmp": (b"BM",),
}


def _matches_signature(subtype: str, data: bytes) -> bool:
    if subtype == "webp":
        return data[:4] == b"RIFF" and data[8:12] == b"WEBP"
    return data.startswith(IMAGE_SIGNATURES[subtype])

EXTRACTED_EXT = ".jpg"


def decode_data_url(value: str) -> tuple[str, bytes]:
    """Decode `data:image/<subtype>;base64,<payload>` into (ext, bytes). Raises ValueError."""
    match = DATA_URL_RE.match(value.strip())
    if not match:
        raise ValueError("not a base64 image data URL")
    subtype = match.group(1).lower()
    if subtype not in SUPPORTED_IMAGE_SUBTYPES:
        raise ValueError(f"unsupported image type: image/{subtype}")
    payload = re.sub(r"\s+", "", match.group(2))
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e
    if not data:
        raise ValueError("empty image payload")
    if not _matches_signature(subtype, data):
        raise ValueError(f"payload is not a {subtype} image")
    return f".{subtype}", data


class ThumbnailResolver:
    def __init__(self, storage: LocalStorage, extractor: FrameExtractor, offset: float = 1.0):
        self.storage = storage
        self.extractor = extractor
        self.offset = offset

    def save_inline(self, inline: str) -> str | None:
        try:
            ext, data = decode_data_url(inline)
        except ValueError as e:
            logger.warning("Inline thumbnail rejected, falling back to extraction: %s", e)
            return None
        try:
            return self.storage.save_bytes(data, ext)
        except OSError as e:
            logger.warning("Inline thumbnail save failed, falling back to extraction: %s", e)
            return None

    async def extract(self, video_name: str) -> str | None:
        name, destination = self.storage.new_path(EXTRACTED_EXT)
        try:
            await self.extractor.extract_frame(self.storage.path_for(video_name), self.offset, destination)
        except ExtractionError as e:
            logger.warning("Server-side thumbnail generation failed for %s: %s", video_name, e.message)
            self._drop_partial(name)
            return None
        except BaseException:
            self._drop_partial(name)
            raise
        return name

    def _drop_partial(self, name: str) -> None:
        try:
            self.storage.remove(name)
        except OSError as e:
            logger.error("Could not remove partial thumbnail %s: %s", name, e)

    async def resolve(self, video_name: str, inline: str | None = None) -> str | None:
        """Return the storage name of the video's thumbnail, or None."""
        if inline:
            name = self.save_inline(inline)
            if name:
                return name
        return await self.extract(video_name)
