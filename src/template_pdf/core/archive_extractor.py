"""
Archive extraction module for the template PDF pipeline.

Reads a repository zip snapshot and returns the markdown templates it
contains, in archive order.
"""

import io
import zlib
import logging
import zipfile
from pathlib import Path
from typing import List, Optional, Union

from .content_types import ArchiveEntry
from ..errors import ArchiveExtractionError

logger = logging.getLogger(__name__)


class ArchiveExtractor:
    """
    Extracts qualifying template documents from a zip archive.

    Filtering rules, applied in order:
    - keep only paths containing ".md"
    - drop paths containing "README.md"
    - drop files whose base name starts with a dot

    The archive's synthetic root directory is stripped from multi-segment
    paths. Entries are returned in the archive's own order.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def extract(self, archive: Union[str, Path, bytes]) -> List[ArchiveEntry]:
        """
        Extract qualifying entries from a zip file path or zip bytes.

        Args:
            archive: Path to a zip file on disk, or the raw zip bytes

        Returns:
            Ordered list of ArchiveEntry

        Raises:
            ArchiveExtractionError: If the archive cannot be read
        """
        source = io.BytesIO(archive) if isinstance(archive, (bytes, bytearray)) else Path(archive)
        entries = []

        try:
            with zipfile.ZipFile(source, 'r') as zf:
                for info in zf.infolist():
                    if info.is_dir():
                        continue

                    relative_path = self.qualify(info.filename)
                    if relative_path is None:
                        continue

                    content = zf.read(info).decode(self.encoding, errors='replace')

                    entries.append(ArchiveEntry(relative_path=relative_path, content=content))

        except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
            logger.error(f"Failed to extract archive: {e}")
            raise ArchiveExtractionError(f"Archive extraction failed: {e}")

        logger.info(f"Extracted {len(entries)} templates from archive")
        return entries

    def qualify(self, path: str) -> Optional[str]:
        """
        Apply the filter rules to an archive path.

        Returns:
            The path with the archive root stripped, or None if excluded
        """
        if '.md' not in path:
            return None

        if 'README.md' in path:
            return None

        if path.split('/')[-1].startswith('.'):
            return None

        return self.strip_root(path)

    @staticmethod
    def strip_root(path: str) -> str:
        """Drop the first segment of a multi-segment path."""
        segments = path.split('/')
        if len(segments) > 1:
            segments = segments[1:]
        return '/'.join(segments)
