"""
Tests for the process handler.
"""

import json
import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from template_pdf.handler import ProcessHandler, handle_event, parse_body
from template_pdf.services.upload_sink import UploadResult
from tests.utils.helpers import FAKE_PDF, FakeUploader


def event_for(action, template_name="", token="process-token", channel_id="C123"):
    return {'body': {
        'action': action,
        'template_name': template_name,
        'channel_id': channel_id,
        'token': token,
    }}


def response_text(response):
    return json.loads(response['body'])['text']


class TestParseBody:

    def test_dict_body(self):
        assert parse_body({'body': {'a': '1'}}) == {'a': '1'}

    def test_json_body(self):
        assert parse_body({'body': '{"action": "all"}'}) == {'action': 'all'}

    def test_form_encoded_body(self):
        body = parse_body({'body': 'action=template&template_name=test-template&token=abc'})

        assert body == {'action': 'template', 'template_name': 'test-template', 'token': 'abc'}

    def test_missing_body(self):
        assert parse_body({}) == {}


class TestProcessHandler:

    @pytest.mark.asyncio
    async def test_invalid_token(self, pipeline, settings, renderer):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('template', 'test-template', token='wrong'))

        assert response['statusCode'] == 401
        assert response['headers'] == {'Content-Type': 'application/json'}
        assert response['body'] == json.dumps({'text': 'Invalid request token'})
        assert renderer.rendered_html == []
        assert uploader.uploads == []

    @pytest.mark.asyncio
    async def test_unconfigured_token_rejects(self, pipeline, settings):
        settings.process_access_token = None
        handler = ProcessHandler(pipeline, FakeUploader(), settings)

        response = await handler.handle(event_for('all', token=None))

        assert response['statusCode'] == 401

    @pytest.mark.asyncio
    async def test_template_upload(self, pipeline, settings, temp_dir):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('template', 'test-template'))

        assert response['statusCode'] == 200
        assert response_text(response) == 'Generating PDF for test-template'
        assert uploader.uploads == [('C123', 'test-template.pdf', FAKE_PDF)]
        # Rendered PDF is released after upload
        assert list(temp_dir.glob("*.pdf")) == []

    @pytest.mark.asyncio
    async def test_template_upload_by_path(self, pipeline, settings):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('template', 'test/template.md'))

        assert response_text(response) == 'Generating PDF for test-template'
        assert uploader.uploads[0][1] == 'test-template.pdf'

    @pytest.mark.asyncio
    async def test_compare_upload(self, pipeline, settings):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('compare', 'test-template'))

        assert response_text(response) == 'Generating PDF for test-template across branches'
        assert uploader.uploads[0][1] == 'test-template-compare.pdf'

    @pytest.mark.asyncio
    async def test_all_upload(self, pipeline, settings):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('all'))

        assert response_text(response) == 'Generating PDF for all templates'
        assert uploader.uploads[0][1] == 'all-templates.pdf'

    @pytest.mark.asyncio
    async def test_no_action(self, pipeline, settings):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('unknown'))

        assert response['statusCode'] == 200
        assert response_text(response) == 'No action requested'
        assert uploader.uploads == []

    @pytest.mark.asyncio
    async def test_template_not_found(self, pipeline, settings):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('template', 'missing-template'))

        assert response['statusCode'] == 200
        assert response_text(response) == 'Template not found: missing-template'
        assert uploader.uploads == []

    @pytest.mark.asyncio
    async def test_missing_template_name(self, pipeline, settings):
        uploader = FakeUploader()
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('template'))

        assert response_text(response) == 'No template name given'
        assert uploader.uploads == []

    @pytest.mark.asyncio
    async def test_upload_error_relayed_verbatim(self, pipeline, settings, temp_dir):
        uploader = FakeUploader(result=UploadResult(ok=False, error='not_in_channel'))
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('template', 'test-template'))

        assert response_text(response) == 'not_in_channel'
        assert list(temp_dir.glob("*.pdf")) == []

    @pytest.mark.asyncio
    async def test_upload_exception_reported(self, pipeline, settings, temp_dir):
        uploader = FakeUploader(error=ConnectionError("network down"))
        handler = ProcessHandler(pipeline, uploader, settings)

        response = await handler.handle(event_for('all'))

        assert response['statusCode'] == 200
        assert response_text(response) == 'Upload failed: network down'
        assert list(temp_dir.glob("*.pdf")) == []

    @pytest.mark.asyncio
    async def test_json_string_body(self, pipeline, settings):
        handler = ProcessHandler(pipeline, FakeUploader(), settings)
        event = {'body': json.dumps(event_for('all')['body'])}

        response = await handler.handle(event)

        assert response_text(response) == 'Generating PDF for all templates'


class TestHandleEvent:

    @pytest.mark.asyncio
    @patch('template_pdf.handler.configure_logging')
    @patch('template_pdf.handler.SlackUploader')
    @patch('template_pdf.handler.GitHubVersionSource')
    @patch('template_pdf.handler.PDFRenderer')
    async def test_wires_collaborators(self, mock_renderer_cls, mock_source_cls, mock_uploader_cls,
                                       mock_configure_logging, settings):
        renderer = MagicMock()
        mock_renderer_cls.return_value.__aenter__ = AsyncMock(return_value=renderer)
        mock_renderer_cls.return_value.__aexit__ = AsyncMock(return_value=False)

        response = await handle_event(event_for('unknown'), settings=settings)

        assert response_text(response) == 'No action requested'
        mock_configure_logging.assert_called_once_with(settings)
        mock_source_cls.assert_called_once_with(settings)
        mock_uploader_cls.assert_called_once_with(settings)
        options = mock_renderer_cls.call_args.kwargs['options']
        assert options.dpi == 196
        assert options.disable_smart_shrinking is True
        assert mock_renderer_cls.call_args.kwargs['temp_dir'] == settings.temp_dir

    @pytest.mark.asyncio
    @patch('template_pdf.handler.configure_logging')
    @patch('template_pdf.core.pdf_renderer.async_playwright')
    async def test_invalid_token_never_starts_browser(self, mock_async_playwright, mock_configure_logging,
                                                      settings):
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock()
        mock_async_playwright.return_value.start = AsyncMock(return_value=playwright)

        response = await handle_event({'body': {'action': 'all', 'token': 'wrong'}}, settings=settings)

        assert response['statusCode'] == 401
        assert response_text(response) == 'Invalid request token'
        mock_async_playwright.assert_not_called()
        assert playwright.chromium.launch.await_count == 0

    @pytest.mark.asyncio
    @patch('template_pdf.handler.configure_logging')
    @patch('template_pdf.handler.PDFRenderer')
    async def test_unconfigured_token_rejected_before_rendering(self, mock_renderer_cls, mock_configure_logging,
                                                                settings):
        settings.process_access_token = None

        response = await handle_event(event_for('all', token=None), settings=settings)

        assert response['statusCode'] == 401
        mock_renderer_cls.assert_not_called()
