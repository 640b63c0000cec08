"""
Content type definitions for the template PDF pipeline.

This module provides the data structures that flow between the fetch,
parse, compose and render stages.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, List, BinaryIO

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """Raw template document as fetched from a source."""

    source_path: str
    raw_text: str = ""


@dataclass
class ParsedTemplate:
    """
    Named fields of a section-keyed template document.

    Every field is empty when its section is missing.
    """

    from_email: str = ""
    from_name: str = ""
    subject: str = ""
    html: str = ""
    text: str = ""
    labels: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.labels is None:
            self.labels = []


@dataclass
class TemplateDescriptor:
    """Logical template name paired with its repository path."""

    logical_name: str
    source_path: str


@dataclass
class BranchSnapshot:
    """A document as it exists on one branch."""

    branch_name: str
    document: Document


@dataclass
class ArchiveEntry:
    """Qualifying markdown file extracted from an archive snapshot."""

    relative_path: str
    content: str


@dataclass
class RenderEntry:
    """One block of a multi-document render request."""

    template: ParsedTemplate
    logical_name: str
    source_path: str
    label: Optional[str] = None


@dataclass
class RenderedPDF:
    """
    Owned handle to a rendered PDF in temporary storage.

    The file is removed by ``cleanup()`` or on leaving a ``with`` block.
    """

    pdf_path: Path
    file_size: int = 0
    generation_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}

        if not self.file_size and self.pdf_path.exists():
            self.file_size = self.pdf_path.stat().st_size

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()

    def read_bytes(self) -> bytes:
        """Return the full PDF content."""
        return self.pdf_path.read_bytes()

    def open(self) -> BinaryIO:
        """Open a fresh binary read handle on the PDF."""
        return open(self.pdf_path, 'rb')

    def cleanup(self) -> bool:
        """Delete the temporary PDF file. Returns True if a file was removed."""
        if self.pdf_path.exists():
            self.pdf_path.unlink()
            logger.debug(f"Removed rendered PDF: {self.pdf_path}")
            return True
        return False


class PipelineOutcome(str, Enum):
    """Outcome kinds of a pipeline run."""

    RENDERED = "rendered"
    NOT_FOUND = "not_found"
    NO_ACTION = "no_action"


@dataclass
class PipelineResult:
    """Result of dispatching one pipeline action."""

    action: Optional[str]
    outcome: PipelineOutcome
    pdf: Optional[RenderedPDF] = None
    template_name: Optional[str] = None
    source_path: Optional[str] = None

    @property
    def rendered(self) -> bool:
        return self.outcome is PipelineOutcome.RENDERED
