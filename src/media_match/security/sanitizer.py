"""
Prompt Input Sanitizer

Cleans text that is interpolated into comparator prompts:
- Remove script tags, HTML tags and control characters
- Collapse labels (file names) to a single safe line
- Cap length so one oversized description cannot crowd out the prompt
"""

import re


class Sanitizer:
    """
    Sanitizes descriptor text and item labels before prompt assembly.

    Descriptions come from an earlier model call and labels come from
    uploaded file names, so neither is trusted.
    """

    SCRIPT_PATTERN = re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL)
    HTML_TAG_PATTERN = re.compile(r'<[^>]+>')
    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
    WHITESPACE_PATTERN = re.compile(r'\s+')
    PATH_TRAVERSAL_PATTERN = re.compile(r'\.\./')

    MAX_DESCRIPTION_LENGTH = 4000
    MAX_LABEL_LENGTH = 200

    def sanitize_description(self, text: str) -> str:
        """
        Sanitize a multi-line descriptor for prompt use.

        Args:
            text: Raw face or voice description

        Returns:
            Cleaned text, truncated to MAX_DESCRIPTION_LENGTH
        """
        if not text:
            return ""

        text = self.SCRIPT_PATTERN.sub('', text)
        text = self.HTML_TAG_PATTERN.sub('', text)
        text = self.CONTROL_CHARS_PATTERN.sub('', text)

        if len(text) > self.MAX_DESCRIPTION_LENGTH:
            text = text[:self.MAX_DESCRIPTION_LENGTH] + "... [truncated]"

        return text.strip()

    def sanitize_label(self, label: str) -> str:
        """
        Sanitize an item label (usually a file name) to one short line.

        Quotes and newlines are removed so a label cannot close the
        surrounding prompt section.
        """
        if not label:
            return ""

        label = self.HTML_TAG_PATTERN.sub('', label)
        label = self.CONTROL_CHARS_PATTERN.sub('', label)
        label = self.PATH_TRAVERSAL_PATTERN.sub('', label)
        label = label.replace('"', '').replace('`', '')
        label = self.WHITESPACE_PATTERN.sub(' ', label).strip()

        return label[:self.MAX_LABEL_LENGTH]
