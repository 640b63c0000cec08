"""
Process handler for chat-command PDF requests.

Validates the request token, runs the requested pipeline action, uploads
the resulting PDF and builds the HTTP-style response returned to the
invoker.
"""

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from .config import Settings
from .core.content_types import PipelineOutcome, PipelineResult
from .core.pdf_renderer import PDFRenderer, RenderOptions
from .core.pipeline import ACTION_ALL, ACTION_COMPARE, Pipeline
from .logging import configure_logging
from .services.upload_sink import SlackUploader, UploadResult, UploadSink
from .services.version_source import GitHubVersionSource

logger = logging.getLogger(__name__)

NO_ACTION_MESSAGE = 'No action requested'
INVALID_TOKEN_MESSAGE = 'Invalid request token'
MISSING_TEMPLATE_MESSAGE = 'No template name given'


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode an event body given as a dict, a JSON string or a form-encoded string."""
    body = event.get('body')
    if body is None:
        return {}
    if not isinstance(body, str):
        return dict(body)

    try:
        decoded = json.loads(body)
    except ValueError:
        return dict(parse_qsl(body))

    return decoded if isinstance(decoded, dict) else {}


def authorize(body: Dict[str, Any], settings: Settings) -> bool:
    """True if the body carries the configured process token. An unset token rejects everything."""
    expected_token = settings.process_access_token
    return bool(expected_token) and body.get('token') == expected_token


def json_response(text: str, status_code: int = 200) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps({'text': text}),
    }


def reject() -> Dict[str, Any]:
    logger.warning("Rejected process request with invalid token")
    return json_response(INVALID_TOKEN_MESSAGE, status_code=401)


def upload_filename(result: PipelineResult) -> str:
    if result.action == ACTION_ALL:
        return 'all-templates.pdf'
    if result.action == ACTION_COMPARE:
        return f"{result.template_name}-compare.pdf"
    return f"{result.template_name}.pdf"


def success_message(result: PipelineResult) -> str:
    if result.action == ACTION_ALL:
        return 'Generating PDF for all templates'
    if result.action == ACTION_COMPARE:
        return f"Generating PDF for {result.template_name} across branches"
    return f"Generating PDF for {result.template_name}"


class ProcessHandler:
    """
    Handles one process request end to end.

    Request body fields: ``token``, ``action``, ``template_name``,
    ``channel_id``.
    """

    def __init__(self, pipeline: Pipeline, uploader: UploadSink, settings: Settings):
        self.pipeline = pipeline
        self.uploader = uploader
        self.settings = settings

    async def handle(self, event: Dict[str, Any]) -> Dict[str, Any]:
        body = parse_body(event)
        if not authorize(body, self.settings):
            return reject()
        return await self.dispatch(body)

    async def dispatch(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Run an already authorized request."""
        action = body.get('action')
        identifier = body.get('template_name') or None
        channel_id = body.get('channel_id')
        logger.info(f"Processing action={action!r} template={identifier!r} channel={channel_id!r}")

        result = await self.pipeline.run(action, identifier)

        if result.outcome is PipelineOutcome.NO_ACTION:
            return json_response(NO_ACTION_MESSAGE)

        if result.outcome is PipelineOutcome.NOT_FOUND:
            if not identifier:
                return json_response(MISSING_TEMPLATE_MESSAGE)
            return json_response(f"Template not found: {identifier}")

        with result.pdf:
            upload = await self._upload(channel_id, upload_filename(result), result)

        if upload.ok:
            return json_response(success_message(result))

        return json_response(upload.error or NO_ACTION_MESSAGE)

    async def _upload(self, channel_id: Optional[str], filename: str, result: PipelineResult) -> UploadResult:
        try:
            return await self.uploader.upload(channel_id, filename, result.pdf)
        except Exception as e:
            logger.exception(f"Upload of {filename} failed")
            return UploadResult(ok=False, error=f"Upload failed: {e}")


async def handle_event(event: Dict[str, Any], settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Entry point: check the request token, then build the GitHub/Slack
    collaborators from settings and handle the event with a fresh browser.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings)

    body = parse_body(event)
    if not authorize(body, settings):
        return reject()

    source = GitHubVersionSource(settings)
    options = RenderOptions(
        disable_smart_shrinking=settings.disable_smart_shrinking,
        dpi=settings.render_dpi
    )

    async with PDFRenderer(options=options, temp_dir=settings.temp_dir) as renderer:
        pipeline = Pipeline(source, source, renderer, settings=settings)
        handler = ProcessHandler(pipeline, SlackUploader(settings), settings)
        return await handler.dispatch(body)
