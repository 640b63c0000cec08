"""
Template PDF

Renders version-controlled email templates to PDF: a single template, one
template compared across branches, or every template in the repository.

Main exports:
- Pipeline: Orchestrates the template, compare and all actions
- SectionParser: Parses section-keyed template markdown
- HTMLComposer: Composes parsed templates into printable HTML
- PDFRenderer: Renders HTML to PDF with Playwright
- GitHubVersionSource: Fetches templates, branches and archives from GitHub
- SlackUploader: Uploads rendered PDFs to a chat channel
- Settings: Runtime configuration
"""

from .config import Settings
from .core import (
    Pipeline, SectionParser, ArchiveExtractor, TemplateResolver, BranchAggregator,
    HTMLComposer, PDFRenderer, RenderOptions, ParsedTemplate, RenderedPDF, PipelineResult
)
from .services import VersionSource, ArchiveSource, GitHubVersionSource, UploadSink, SlackUploader

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "Pipeline",
    "SectionParser",
    "ArchiveExtractor",
    "TemplateResolver",
    "BranchAggregator",
    "HTMLComposer",
    "PDFRenderer",
    "RenderOptions",
    "ParsedTemplate",
    "RenderedPDF",
    "PipelineResult",
    "VersionSource",
    "ArchiveSource",
    "GitHubVersionSource",
    "UploadSink",
    "SlackUploader"
]
