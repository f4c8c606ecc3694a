"""Storage service for media files.

Videos and thumbnails share one flat directory and are told apart only by
extension and by the video row that references them. Names are
"<epoch-ms>-<token><ext>", so concurrent writers never need a lock.
"""
import time
import uuid
from pathlib import Path

from app.core.config import settings


def _clean_ext(ext: str | None) -> str:
    if not ext:
        return ""
    ext = ext.lstrip(".")
    if not ext or not ext.isalnum():
        return ""
    return f".{ext}"


def generate_name(original_filename: str | None = None, ext: str | None = None) -> str:
    """Collision-resistant storage name, keeping the client's extension when it has one."""
    if ext is None and original_filename:
        ext = Path(original_filename).suffix
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{_clean_ext(ext)}"


class LocalStorage:
    """Store files on local disk under a single directory."""

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        # Storage references are bare file names; anything else is not ours
        if not name or Path(name).name != name:
            raise ValueError(f"Invalid storage name: {name!r}")
        return self.base_dir / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def new_path(self, ext: str) -> tuple[str, Path]:
        """Reserve a fresh name for a file another component will write."""
        name = generate_name(ext=ext)
        return name, self.path_for(name)

    def save_bytes(self, data: bytes, ext: str) -> str:
        name, filepath = self.new_path(ext)
        filepath.write_bytes(data)
        return name

    def remove(self, name: str) -> bool:
        """Delete a stored file. False if it was already gone; other OSErrors propagate."""
        try:
            self.path_for(name).unlink()
        except FileNotFoundError:
            return False
        return True

    def list_names(self) -> list[str]:
        return sorted(p.name for p in self.base_dir.iterdir() if p.is_file())


# Singleton - the directory is created once, at first use
_storage: LocalStorage | None = None


def get_storage() -> LocalStorage:
    global _storage
    if _storage is None:
        _storage = LocalStorage()
    return _storage
