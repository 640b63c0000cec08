"""
Upload sink abstraction for delivering rendered PDFs to a chat channel.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import asyncio
import logging

import requests

from ..config import Settings
from ..core.content_types import RenderedPDF

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Response of an upload sink."""

    ok: bool
    error: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class UploadSink(ABC):
    """Abstract destination for rendered PDFs"""

    @abstractmethod
    async def upload(self, destination: str, filename: str, pdf: RenderedPDF) -> UploadResult:
        """Upload a PDF and report the sink's response"""
        pass


class SlackUploader(UploadSink):
    """Uploads PDFs to a Slack channel through the files.upload API"""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    async def upload(self, destination: str, filename: str, pdf: RenderedPDF) -> UploadResult:
        payload = await asyncio.to_thread(self._post, destination, filename, pdf)
        result = UploadResult(ok=bool(payload.get('ok')), error=payload.get('error'), raw=payload)

        if result.ok:
            logger.info(f"Uploaded {filename} to {destination}")
        else:
            logger.warning(f"Upload of {filename} to {destination} rejected: {result.error}")
        return result

    def _post(self, destination: str, filename: str, pdf: RenderedPDF) -> Dict[str, Any]:
        """Blocking multipart POST; runs in a worker thread."""
        data = {
            'token': self.settings.chat_access_token,
            'filename': filename,
            'filetype': 'pdf',
            'channels': destination,
        }

        with pdf.open() as f:
            response = self.session.post(
                self.settings.chat_upload_url,
                data=data,
                files={'file': (filename, f, 'application/pdf')},
                timeout=self.settings.request_timeout
            )

        response.raise_for_status()
        return response.json()
