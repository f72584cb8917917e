"""
Provides methods for checking the integrity of downloaded media files.

Neither check is authoritative; callers log the outcome and leave the final
verdict to the decoder that plays the file.
"""

import logging

import mutagen

log = logging.getLogger(__name__)


class FileIntegrityChecker:
    """A collection of static methods for validating media file integrity."""

    @staticmethod
    def sniff_container(data: bytes) -> str | None:
        """
        Identifies the audio container from the leading bytes of a file.

        Args:
            data: The file contents, or at least its first four bytes.

        Returns:
            'flac', 'mp3', 'ogg' or 'wav' if a known signature is found, else None.
        """
        if len(data) < 4:
            return None
        if data.startswith(b"fLaC"):
            return "flac"
        if data.startswith(b"ID3") or (data[0] == 0xFF and (data[1] & 0xE0) == 0xE0):
            return "mp3"
        if data.startswith(b"OggS"):
            return "ogg"
        if data.startswith(b"RIFF"):
            return "wav"
        return None

    @staticmethod
    def check_decodable(filepath: str) -> bool:
        """
        Checks if the file can be opened by mutagen and has valid stream info.

        Args:
            filepath: Path to the audio file.

        Returns:
            True if mutagen recognizes the file, False otherwise.
        """
        try:
            audio = mutagen.File(filepath)
        except mutagen.MutagenError as e:
            log.warning(f"Integrity check failed for '{filepath}': {e}")
            return False
        except Exception as e:
            log.debug(f"Integrity check failed for '{filepath}' with unexpected error: {e}")
            return False
        if audio is None or audio.info is None:
            log.warning(
                f"Integrity check failed for '{filepath}': Unrecognized audio format."
            )
            return False
        return True
