"""
Branch aggregation module for the template PDF pipeline.
"""

import logging
from typing import List

from .content_types import BranchSnapshot, Document
from ..services.version_source import VersionSource

logger = logging.getLogger(__name__)


class BranchAggregator:
    """Fetches one file's content from every branch of a VersionSource."""

    def __init__(self, source: VersionSource):
        self.source = source

    async def collect(self, source_path: str) -> List[BranchSnapshot]:
        """
        Fetch a file at each branch, one branch at a time.

        Args:
            source_path: Repository path of the file

        Returns:
            Snapshots in the source's branch-listing order

        Raises:
            SourceFetchError: If the listing or any single fetch fails
        """
        branches = await self.source.list_branches()
        snapshots = []

        for i, branch in enumerate(branches):
            logger.debug(f"Fetching {source_path} at branch {i+1}/{len(branches)}: {branch}")
            raw_text = await self.source.get_file_content(source_path, ref=branch)
            snapshots.append(BranchSnapshot(
                branch_name=branch,
                document=Document(source_path=source_path, raw_text=raw_text)
            ))

        logger.info(f"Collected {source_path} across {len(snapshots)} branches")
        return snapshots
