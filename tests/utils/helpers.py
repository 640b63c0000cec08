"""
Test helper utilities for template-pdf.
"""

import io
import zipfile
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from template_pdf.core.content_types import RenderedPDF
from template_pdf.errors import SourceFetchError
from template_pdf.services.upload_sink import UploadResult, UploadSink
from template_pdf.services.version_source import ArchiveSource, VersionSource


SAMPLE_TEMPLATE = """# Subject
Password reset request

# Html
<div mc:edit="header">
    <p>*|FNAME|*,</p>
    <p>We received a request to reset the password associated with this e-mail address.</p>
</div>
<div mc:edit="footer">
Accessibly yours,<br/>
The Parking Mobility Team
</div>

# Text


# Labels
* changepassword

# From Email
support@parkingmobility.com

# From Name
Parking Mobility

"""

FAKE_PDF = b"%PDF-1.4\nfake pdf content"


def make_template(subject: str, labels: Sequence[str] = (), html: str = "<p>body</p>") -> str:
    """Build a minimal section-keyed template document."""
    bullets = "\n".join(f"* {label}" for label in labels)
    return f"# Subject\n{subject}\n\n# Html\n{html}\n\n# Labels\n{bullets}\n"


def build_zip(entries: Sequence[Tuple[str, str]]) -> bytes:
    """Build zip bytes from (path, content) pairs, in the given order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buffer.getvalue()


class FakeVersionSource(VersionSource, ArchiveSource):
    """In-memory version source recording every call."""

    def __init__(
        self,
        files: Optional[Dict[str, str]] = None,
        branches: Optional[List[str]] = None,
        branch_files: Optional[Dict[Tuple[str, str], str]] = None,
        archive: bytes = b"",
        failing_refs: Sequence[str] = ()
    ):
        self.files = files or {}
        self.branches = branches or []
        self.branch_files = branch_files or {}
        self.archive = archive
        self.failing_refs = set(failing_refs)
        self.calls: List[Tuple] = []

    async def list_branches(self) -> List[str]:
        self.calls.append(('list_branches',))
        return list(self.branches)

    async def list_all_files(self) -> List[str]:
        self.calls.append(('list_all_files',))
        return list(self.files)

    async def get_file_content(self, path: str, ref: Optional[str] = None) -> str:
        self.calls.append(('get_file_content', path, ref))
        if ref in self.failing_refs:
            raise SourceFetchError(f"GET {path}@{ref} returned 500", status_code=500)
        if ref is not None and (path, ref) in self.branch_files:
            return self.branch_files[(path, ref)]
        if path not in self.files:
            raise SourceFetchError(f"GET {path} returned 404", status_code=404)
        return self.files[path]

    async def get_file_web_link(self, path: str) -> str:
        self.calls.append(('get_file_web_link', path))
        return f"https://github.com/example/templates/blob/master/{path}"

    async def get_archive_bytes(self, ref: str) -> bytes:
        self.calls.append(('get_archive_bytes', ref))
        return self.archive


class FakeRenderer:
    """Stands in for PDFRenderer; records the HTML it is asked to render."""

    def __init__(self, temp_dir: Optional[Path] = None):
        self.temp_dir = temp_dir
        self.rendered_html: List[str] = []

    async def render(self, html: str) -> RenderedPDF:
        self.rendered_html.append(html)
        with tempfile.NamedTemporaryFile(suffix='.pdf', dir=self.temp_dir, delete=False) as f:
            f.write(FAKE_PDF)
        return RenderedPDF(pdf_path=Path(f.name))

    @property
    def last_html(self) -> str:
        return self.rendered_html[-1]


class FakeUploader(UploadSink):
    """Upload sink returning a fixed response."""

    def __init__(self, result: Optional[UploadResult] = None, error: Optional[Exception] = None):
        self.result = result or UploadResult(ok=True)
        self.error = error
        self.uploads: List[Tuple[str, str, bytes]] = []

    async def upload(self, destination, filename, pdf) -> UploadResult:
        self.uploads.append((destination, filename, pdf.read_bytes()))
        if self.error is not None:
            raise self.error
        return self.result


def assert_pdf_valid(pdf_path: Path):
    """Assert that a PDF file is valid and not empty."""
    assert pdf_path.exists(), f"PDF file not found: {pdf_path}"
    assert pdf_path.stat().st_size > 0, f"PDF file is empty: {pdf_path}"

    with open(pdf_path, 'rb') as f:
        header = f.read(4)
        assert header == b'%PDF', f"Invalid PDF header: {pdf_path}"
