"""
A file-based cache of downloaded tracks, keyed by the catalog identifier.
Cached files are reused only while they pass a size-based validity check.
"""

import logging
import os
from pathlib import Path
from urllib.parse import urlparse

from pathvalidate import sanitize_filename

from tfm_client.exceptions import CacheInvalidError

log = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset(
    {".mp3", ".flac", ".wav", ".ogg", ".m4a", ".aac", ".opus", ".wma"}
)
DEFAULT_EXTENSION = ".mp3"


def _audio_suffix(name: str) -> str | None:
    dot_pos = name.rfind(".")
    if dot_pos <= 0:
        return None
    ext = name[dot_pos:].lower()
    return ext if ext in AUDIO_EXTENSIONS else None


def infer_extension(display_name: str, url: str) -> str:
    """
    Picks the file extension for a cached track: the display name's suffix if it is
    a known audio extension, else the URL path's, else the default.
    """
    if display_name and (ext := _audio_suffix(display_name)):
        return ext
    if url and (ext := _audio_suffix(urlparse(url).path)):
        return ext
    return DEFAULT_EXTENSION


def sanitize_identifier(identifier: str) -> str:
    """Makes a catalog identifier safe to use as a file name."""
    cleaned = identifier.replace("/", "_").replace("\\", "_").replace(":", "_")
    return sanitize_filename(cleaned, replacement_text="_", platform="universal")


class TrackCache:
    """
    Manages the directory of cached track files.
    """

    def __init__(self, cache_dir: Path, min_size: int = 1000):
        """
        Initializes the cache.

        Args:
            cache_dir: The directory where track files are stored.
            min_size: Files at or below this many bytes are never considered valid.
        """
        self.cache_dir = Path(cache_dir)
        self.min_size = min_size

    def path_for(self, identifier: str, display_name: str = "", url: str = "") -> Path:
        """Derives the cache path for a track."""
        ext = infer_extension(display_name, url)
        stem = sanitize_identifier(identifier)
        if stem.lower().endswith(ext):
            stem = stem[: -len(ext)]
        return self.cache_dir / f"{stem}{ext}"

    def validate(self, path: Path, expected_size: int = 0) -> int:
        """
        Checks a cached file against the validity rule.

        Returns:
            The file size if the file is valid.

        Raises:
            CacheInvalidError: If the file is too small or its size differs from a
            known expected size.
        """
        size = path.stat().st_size
        if size <= self.min_size:
            raise CacheInvalidError(f"Cached file too small ({size} bytes)")
        if expected_size > 0 and size != expected_size:
            raise CacheInvalidError(
                f"Cached file size mismatch (cached {size}, expected {expected_size})"
            )
        return size

    def probe(self, path: Path, expected_size: int = 0) -> bool:
        """
        Returns True if a valid cached file exists at `path`. An invalid file is
        deleted, so probing again reports it as absent.
        """
        if not path.is_file():
            return False
        try:
            size = self.validate(path, expected_size)
        except CacheInvalidError as e:
            log.warning(f"{e}, removing: {path}")
            self.discard(path)
            return False
        except OSError as e:
            log.debug(f"Cache probe failed for '{path}': {e}")
            return False
        log.info(f"Using cached track: {path} size: {size}")
        return True

    def discard(self, path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(f"Failed to remove cached file {path.name}: {e}")

    def clear(self) -> int:
        """Removes all cached track files and returns how many were deleted."""
        log.info("Clearing all cached tracks...")
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for cache_file in self.cache_dir.iterdir():
            if cache_file.is_file() and (
                cache_file.suffix.lower() in AUDIO_EXTENSIONS
                or cache_file.suffix == ".part"
            ):
                self.discard(cache_file)
                removed += 1
        return removed
