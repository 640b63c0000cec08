"""
Section parsing module for the template PDF pipeline.

Splits section-keyed markdown into the named fields of a ParsedTemplate.
"""

import re
import logging
from typing import List, Optional, Tuple

from .content_types import Document, ParsedTemplate

logger = logging.getLogger(__name__)

HEADING_PATTERN = re.compile(r'^#[ \t]+(.+?)[ \t#]*$')
BULLET_PATTERN = re.compile(r'^\s*[*+-][ \t]+(.*)$')

# Normalised heading -> ParsedTemplate attribute
SECTION_FIELDS = {
    'subject': 'subject',
    'from email': 'from_email',
    'from name': 'from_name',
    'html': 'html',
    'text': 'text',
    'labels': 'labels',
}


class SectionParser:
    """
    Parses the fixed, key-sectioned markdown dialect used by email templates.

    Each section starts with a level-1 heading naming a field (Subject,
    From Email, From Name, Html, Text, Labels) and runs until the next
    level-1 heading. Labels is a bulleted list, one label per bullet.

    Parsing is total: any text yields a ParsedTemplate, missing sections
    are left empty.
    """

    def parse(self, raw_text: Optional[str]) -> ParsedTemplate:
        """
        Parse raw template text.

        Args:
            raw_text: Section-keyed markdown, may be empty or None

        Returns:
            ParsedTemplate with every unmatched field empty
        """
        sections = self._split_sections(raw_text or "")

        values = {}
        for heading, body in sections:
            attribute = SECTION_FIELDS.get(self._normalise_heading(heading))
            if attribute is None:
                logger.debug(f"Ignoring unknown section: {heading}")
                continue
            if attribute == 'labels':
                values[attribute] = self._parse_labels(body)
            else:
                values[attribute] = body.strip()

        return ParsedTemplate(**values)

    def parse_document(self, document: Document) -> ParsedTemplate:
        """Parse a fetched Document."""
        parsed = self.parse(document.raw_text)
        logger.debug(f"Parsed {document.source_path}: subject={parsed.subject!r}, "
                     f"{len(parsed.labels)} labels")
        return parsed

    def _split_sections(self, text: str) -> List[Tuple[str, str]]:
        """Split text into (heading, body) pairs; text before the first heading is dropped."""
        sections = []
        heading = None
        body_lines: List[str] = []

        for line in text.splitlines():
            match = HEADING_PATTERN.match(line)
            if match:
                if heading is not None:
                    sections.append((heading, "\n".join(body_lines)))
                heading = match.group(1)
                body_lines = []
            elif heading is not None:
                body_lines.append(line)

        if heading is not None:
            sections.append((heading, "\n".join(body_lines)))

        return sections

    def _normalise_heading(self, heading: str) -> str:
        return " ".join(heading.split()).lower()

    def _parse_labels(self, body: str) -> List[str]:
        labels = []
        for line in body.splitlines():
            match = BULLET_PATTERN.match(line)
            if match and match.group(1).strip():
                labels.append(match.group(1).strip())
        return labels


def parse_template(raw_text: Optional[str]) -> ParsedTemplate:
    """Convenience wrapper around SectionParser.parse."""
    return SectionParser().parse(raw_text)
