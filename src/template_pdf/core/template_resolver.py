"""
Template resolution module for the template PDF pipeline.

Maps between human-facing template names and repository file paths.
"""

import logging
from typing import Optional

from .content_types import TemplateDescriptor
from ..errors import TemplateNotFoundError
from ..services.version_source import VersionSource

logger = logging.getLogger(__name__)


def derive_name(path: str) -> str:
    """
    Derive a logical template name from a repository path.

    The file suffix is dropped and the path segments are joined with "-"
    (``test/template.md`` -> ``test-template``, ``welcome.md`` -> ``welcome``).
    """
    segments = [segment for segment in path.split('/') if segment]
    if not segments:
        return path

    stem, dot, _suffix = segments[-1].rpartition('.')
    if dot and stem:
        segments[-1] = stem

    return '-'.join(segments)


def name_from_identifier(identifier: Optional[str]) -> Optional[str]:
    """Name for a template name or path. Anything without a "/" is already a name."""
    if not identifier or '/' not in identifier:
        return identifier
    return derive_name(identifier)


class TemplateResolver:
    """
    Resolves logical template names against a VersionSource.

    Lookups list every file from the source on each call; the first file
    whose derived name matches wins.
    """

    def __init__(self, source: VersionSource):
        self.source = source

    def name_from_identifier(self, identifier: Optional[str]) -> Optional[str]:
        return name_from_identifier(identifier)

    async def path_from_name(self, name: Optional[str]) -> Optional[str]:
        """
        Find the repository path for a logical name.

        Args:
            name: Logical template name, or a path (returned as-is)

        Returns:
            First matching path in listing order, or None
        """
        if not name or '/' in name:
            return name

        files = await self.source.list_all_files()
        for path in files:
            if derive_name(path) == name:
                logger.debug(f"Resolved template {name} -> {path}")
                return path

        logger.info(f"No file found for template: {name}")
        return None

    async def resolve(self, identifier: Optional[str]) -> Optional[TemplateDescriptor]:
        """Resolve a name or path to a TemplateDescriptor, or None if unmatched."""
        path = await self.path_from_name(identifier)
        if not path:
            return None
        return TemplateDescriptor(logical_name=name_from_identifier(identifier), source_path=path)

    async def require_path(self, name: str) -> str:
        """Like path_from_name but raises TemplateNotFoundError when unmatched."""
        path = await self.path_from_name(name)
        if not path:
            raise TemplateNotFoundError(f"Template not found: {name}")
        return path

    async def web_link(self, identifier: str) -> str:
        """Browser URL for a template name or path."""
        path = await self.require_path(identifier)
        return await self.source.get_file_web_link(path)
