"""
PDF rendering module for the template PDF pipeline.

Handles Playwright browser integration and HTML to PDF conversion with the
fixed print style used for template exports, using the async API.
"""

import time
import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass

from playwright.async_api import async_playwright, Page, TimeoutError as PlaywrightTimeoutError

from .content_types import RenderedPDF
from ..errors import RenderError

logger = logging.getLogger(__name__)

# CSS reference pixel density
CSS_DPI = 96

PRINT_STYLE = """<style type="text/css">
  html {
    font-family: sans-serif;
  }
  br {
    content: "";
    margin: 2em;
    display: block;
    font-size: 24%;
  }
</style>
"""


@dataclass
class RenderOptions:
    """Options passed to the rendering engine."""

    disable_smart_shrinking: bool = True
    dpi: int = 196

    # Applied only when smart shrinking is enabled
    shrink_scale: float = 0.8

    format: str = "Letter"
    print_background: bool = True

    @property
    def device_scale_factor(self) -> float:
        return self.dpi / CSS_DPI


class PDFRenderer:
    """
    Renders HTML to a temporary PDF file using Playwright and Chromium.

    The renderer prepends a fixed style block, applies fixed engine options
    and writes each PDF to a randomly named file in temporary storage.
    Use as an async context manager to start and stop the browser.
    """

    def __init__(
        self,
        options: Optional[RenderOptions] = None,
        temp_dir: Optional[Path] = None,
        headless: bool = True,
        browser_args: Optional[list] = None
    ):
        """
        Initialize the PDFRenderer.

        Args:
            options: Engine options, defaults to no smart shrinking at 196 DPI
            temp_dir: Directory for rendered files, defaults to the system temp dir
            headless: Whether to run browser in headless mode
            browser_args: Additional browser launch arguments
        """
        self.options = options or RenderOptions()
        self.temp_dir = temp_dir
        self.headless = headless
        self.browser_args = browser_args or []
        self.playwright = None
        self.browser = None

    async def __aenter__(self):
        """Async context manager entry - start browser."""
        await self._start_browser()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - stop browser."""
        await self._stop_browser()

    async def _start_browser(self) -> None:
        try:
            self.playwright = await async_playwright().start()

            launch_options = {
                'headless': self.headless,
                'args': [
                    '--no-sandbox',
                    '--disable-dev-shm-usage',
                    '--disable-gpu',
                    '--font-render-hinting=none',
                ] + self.browser_args
            }

            self.browser = await self.playwright.chromium.launch(**launch_options)
            logger.info("Async browser started successfully")

        except Exception as e:
            logger.error(f"Failed to start async browser: {e}")
            raise RenderError(f"Async browser startup failed: {e}")

    async def _stop_browser(self) -> None:
        try:
            if self.browser:
                await self.browser.close()
                logger.debug("Async browser stopped")
        except Exception as e:
            logger.warning(f"Error stopping async browser: {e}")
        finally:
            self.browser = None

        try:
            if self.playwright:
                await self.playwright.stop()
                logger.debug("Async playwright stopped")
        except Exception as e:
            logger.warning(f"Error stopping async playwright: {e}")
        finally:
            self.playwright = None

    def style_html(self, html: str) -> str:
        """Prepend the fixed print style to an HTML payload."""
        return PRINT_STYLE + html

    async def render(self, html: str) -> RenderedPDF:
        """
        Render HTML to a PDF in temporary storage.

        Args:
            html: Composed HTML payload

        Returns:
            RenderedPDF handle, available once the file is fully written

        Raises:
            RenderError: If the browser is not started or the engine fails
        """
        if not self.browser:
            raise RenderError("Async browser not started. Use async context manager or call _start_browser()")

        start_time = time.time()
        pdf_bytes = await self._render_bytes(self.style_html(html))
        output_path = await asyncio.to_thread(self._write_temp_file, pdf_bytes)

        generation_time = time.time() - start_time
        rendered = RenderedPDF(
            pdf_path=output_path,
            file_size=len(pdf_bytes),
            generation_time=generation_time,
            metadata={
                'dpi': self.options.dpi,
                'disable_smart_shrinking': self.options.disable_smart_shrinking,
            }
        )

        logger.info(f"PDF rendered: {rendered.file_size} bytes in {generation_time:.2f}s -> {output_path}")
        return rendered

    async def _render_bytes(self, html: str) -> bytes:
        page = None
        try:
            page = await self.browser.new_page(device_scale_factor=self.options.device_scale_factor)
            await self._configure_page_for_pdf(page)
            await page.set_content(html, wait_until="load")
            return await page.pdf(**self._build_pdf_options())

        except PlaywrightTimeoutError as e:
            logger.error(f"PDF rendering timeout: {e}")
            raise RenderError(f"PDF rendering timed out: {e}")
        except Exception as e:
            logger.error(f"PDF rendering failed: {e}")
            raise RenderError(f"PDF rendering failed: {e}")
        finally:
            if page is not None:
                await page.close()

    async def _configure_page_for_pdf(self, page: Page) -> None:
        await page.emulate_media(media="print")

    def _build_pdf_options(self) -> Dict[str, Any]:
        """
        Build PDF options dictionary for Playwright.

        Smart shrinking disabled pins the print scale to 1.0.
        """
        options = {
            'format': self.options.format,
            'print_background': self.options.print_background,
            'prefer_css_page_size': False,
            'scale': 1.0 if self.options.disable_smart_shrinking else self.options.shrink_scale,
        }

        logger.debug(f"PDF options: {options}")
        return options

    def _write_temp_file(self, pdf_bytes: bytes) -> Path:
        """Write PDF bytes to a new randomly named temp file."""
        if self.temp_dir is not None:
            self.temp_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            prefix='template-', suffix='.pdf', dir=self.temp_dir, delete=False
        ) as temp_file:
            temp_file.write(pdf_bytes)
            return Path(temp_file.name)
