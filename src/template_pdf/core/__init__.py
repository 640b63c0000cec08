"""
Core pipeline modules.

Contains the main business logic for:
- Section parsing of template documents
- Archive extraction and template resolution
- Branch aggregation
- HTML composition and PDF rendering
- Pipeline orchestration
"""

from .content_types import (
    Document, ParsedTemplate, TemplateDescriptor, BranchSnapshot, ArchiveEntry,
    RenderEntry, RenderedPDF, PipelineOutcome, PipelineResult
)
from .section_parser import SectionParser
from .archive_extractor import ArchiveExtractor
from .template_resolver import TemplateResolver, derive_name, name_from_identifier
from .branch_aggregator import BranchAggregator
from .html_composer import HTMLComposer, PAGE_BREAK
from .pdf_renderer import PDFRenderer, RenderOptions
from .pipeline import Pipeline

__all__ = [
    "Document",
    "ParsedTemplate",
    "TemplateDescriptor",
    "BranchSnapshot",
    "ArchiveEntry",
    "RenderEntry",
    "RenderedPDF",
    "PipelineOutcome",
    "PipelineResult",
    "SectionParser",
    "ArchiveExtractor",
    "TemplateResolver",
    "derive_name",
    "name_from_identifier",
    "BranchAggregator",
    "HTMLComposer",
    "PAGE_BREAK",
    "PDFRenderer",
    "RenderOptions",
    "Pipeline"
]
