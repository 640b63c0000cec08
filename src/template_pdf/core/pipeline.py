"""
Pipeline orchestration for the template PDF pipeline.

Sequences resolve -> fetch -> parse -> compose -> render for the three
supported actions: a single template, a cross-branch comparison, and an
export of every template in the repository.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from .archive_extractor import ArchiveExtractor
from .branch_aggregator import BranchAggregator
from .content_types import (
    ArchiveEntry, Document, PipelineOutcome, PipelineResult, RenderEntry, RenderedPDF
)
from .html_composer import HTMLComposer
from .pdf_renderer import PDFRenderer
from .section_parser import SectionParser
from .template_resolver import TemplateResolver, derive_name, name_from_identifier
from ..config import Settings
from ..logging import timed_operation
from ..services.version_source import ArchiveSource, VersionSource

logger = logging.getLogger(__name__)

ACTION_TEMPLATE = 'template'
ACTION_COMPARE = 'compare'
ACTION_ALL = 'all'
ACTIONS = (ACTION_TEMPLATE, ACTION_COMPARE, ACTION_ALL)


class Pipeline:
    """
    Orchestrates PDF exports of version-controlled email templates.

    Every stage is awaited before the next starts; branches and archive
    entries are processed in order, one at a time. A failed fetch aborts
    the whole operation.
    """

    def __init__(
        self,
        source: VersionSource,
        archive_source: ArchiveSource,
        renderer: PDFRenderer,
        settings: Optional[Settings] = None,
        composer: Optional[HTMLComposer] = None,
        parser: Optional[SectionParser] = None,
        extractor: Optional[ArchiveExtractor] = None
    ):
        self.source = source
        self.archive_source = archive_source
        self.renderer = renderer
        self.settings = settings or Settings()
        self.composer = composer or HTMLComposer()
        self.parser = parser or SectionParser()
        self.extractor = extractor or ArchiveExtractor()
        self.resolver = TemplateResolver(source)
        self.aggregator = BranchAggregator(source)

    @timed_operation("pipeline.render_template")
    async def render_template(self, identifier: str) -> Optional[RenderedPDF]:
        """
        Render a single template.

        Args:
            identifier: Logical template name or repository path

        Returns:
            RenderedPDF, or None if the identifier doesn't resolve
        """
        descriptor = await self.resolver.resolve(identifier)
        if descriptor is None:
            return None

        raw_text = await self.source.get_file_content(descriptor.source_path)
        document = Document(source_path=descriptor.source_path, raw_text=raw_text)

        entries = [RenderEntry(
            template=self.parser.parse_document(document),
            logical_name=descriptor.logical_name,
            source_path=descriptor.source_path
        )]
        return await self._render(entries)

    @timed_operation("pipeline.render_compare")
    async def render_compare(self, identifier: str) -> Optional[RenderedPDF]:
        """
        Render one template as it exists on every branch, labelled by branch.

        Returns:
            RenderedPDF, or None if the identifier doesn't resolve
        """
        descriptor = await self.resolver.resolve(identifier)
        if descriptor is None:
            return None

        snapshots = await self.aggregator.collect(descriptor.source_path)

        entries = [
            RenderEntry(
                template=self.parser.parse_document(snapshot.document),
                logical_name=descriptor.logical_name,
                source_path=descriptor.source_path,
                label=snapshot.branch_name
            )
            for snapshot in snapshots
        ]
        return await self._render(entries)

    @timed_operation("pipeline.render_all")
    async def render_all(self) -> RenderedPDF:
        """Render every template in the archive snapshot of the sync branch."""
        archive_entries = await self.fetch_archive_entries(self.settings.sync_branch)

        entries = [
            RenderEntry(
                template=self.parser.parse(entry.content),
                logical_name=derive_name(entry.relative_path),
                source_path=entry.relative_path
            )
            for entry in archive_entries
        ]
        return await self._render(entries)

    async def fetch_archive_entries(self, ref: str) -> List[ArchiveEntry]:
        """Download the archive at a ref and extract its templates via local storage."""
        archive_bytes = await self.archive_source.get_archive_bytes(ref)
        zip_path = await asyncio.to_thread(self._save_archive, archive_bytes)

        try:
            return await asyncio.to_thread(self.extractor.extract, zip_path)
        finally:
            zip_path.unlink(missing_ok=True)

    async def run(self, action: Optional[str], identifier: Optional[str] = None) -> PipelineResult:
        """
        Dispatch an action.

        Args:
            action: One of "template", "compare", "all"
            identifier: Template name or path, ignored for "all"

        Returns:
            PipelineResult; unknown actions yield NO_ACTION
        """
        if action not in ACTIONS:
            logger.info(f"No action requested: {action!r}")
            return PipelineResult(action=action, outcome=PipelineOutcome.NO_ACTION)

        if action == ACTION_ALL:
            pdf = await self.render_all()
            return PipelineResult(action=action, outcome=PipelineOutcome.RENDERED, pdf=pdf)

        template_name = name_from_identifier(identifier)
        if action == ACTION_TEMPLATE:
            pdf = await self.render_template(identifier)
        else:
            pdf = await self.render_compare(identifier)

        if pdf is None:
            return PipelineResult(
                action=action, outcome=PipelineOutcome.NOT_FOUND, template_name=template_name
            )

        return PipelineResult(
            action=action,
            outcome=PipelineOutcome.RENDERED,
            pdf=pdf,
            template_name=template_name
        )

    async def _render(self, entries: List[RenderEntry]) -> RenderedPDF:
        html = self.composer.compose(entries)
        rendered = await self.renderer.render(html)
        rendered.metadata['documents'] = len(entries)
        return rendered

    def _save_archive(self, archive_bytes: bytes) -> Path:
        temp_dir = self.settings.temp_dir
        if temp_dir is not None:
            temp_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            prefix='templates-', suffix='.zip', dir=temp_dir, delete=False
        ) as temp_file:
            temp_file.write(archive_bytes)
            return Path(temp_file.name)
