"""
HTML composition module for the template PDF pipeline.

Handles Jinja2 rendering of parsed templates into printable blocks and
joins multiple blocks with page breaks.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from .content_types import RenderEntry

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
PAGE_BREAK = '<p style="page-break-before: always">'


class HTMLComposer:
    """
    Composes one or more parsed templates into a single HTML document.

    Features:
    - Fixed visual block per template (name, path, sender, labels, subject, bodies)
    - Optional heading banner per block, e.g. the branch name in a comparison
    - Page-break markers strictly between consecutive blocks

    Html and Text bodies come from the internal template repository and are
    embedded verbatim; the short metadata fields are autoescaped.
    """

    def __init__(
        self,
        template_dirs: Optional[list] = None,
        block_template: str = "template_block.html",
        banner_prefix: str = "Branch"
    ):
        """
        Initialize the HTMLComposer.

        Args:
            template_dirs: Directories searched before the bundled templates
            block_template: Template filename used for each block
            banner_prefix: Text preceding an entry's label in its banner
        """
        self.template_dirs = list(template_dirs or [])
        self.block_template = block_template
        self.banner_prefix = banner_prefix
        self.jinja_env = self._setup_jinja_environment()

    def _setup_jinja_environment(self) -> Environment:
        search_path = [str(d) for d in self.template_dirs] + [str(DEFAULT_TEMPLATE_DIR)]
        return Environment(
            loader=FileSystemLoader(search_path),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True
        )

    def render_block(self, entry: RenderEntry) -> str:
        """
        Render one entry into its HTML block.

        Raises:
            TemplateNotFound: If the block template is missing
        """
        try:
            template = self.jinja_env.get_template(self.block_template)
        except TemplateNotFound:
            logger.error(f"Block template not found: {self.block_template}")
            raise

        return template.render(
            name=entry.logical_name,
            path=entry.source_path,
            label=entry.label,
            banner_prefix=self.banner_prefix,
            template=entry.template
        )

    def compose(self, entries: Sequence[RenderEntry]) -> str:
        """
        Compose entries into one HTML payload.

        Args:
            entries: Ordered render entries

        Returns:
            HTML with len(entries) - 1 page breaks, or "" for no entries
        """
        blocks: List[str] = [self.render_block(entry) for entry in entries]
        html = PAGE_BREAK.join(blocks)
        logger.info(f"Composed {len(blocks)} template blocks into {len(html)} characters of HTML")
        return html
