"""Prompt building from packaged templates.

Each builder pairs a system template (used verbatim) with a user template
formatted with ``str.format`` placeholders:

  * Metadata prompts require "existing_metadata" and "content".
  * Radar prompts require "title", "texts_line", "audio_url" and "content".

Manuscript content is truncated before formatting to keep requests within
provider token limits.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from string import Formatter
from typing import Any, ClassVar

import yaml

from ..llm.models import Message
from .exceptions import PromptBuildError, PromptError, TemplateNotFoundError

# Type aliases
Pathish = str | Path  # for path-like objects
Header = Mapping[str, Any]

TEMPLATE_DIR = Path(__file__).parent / 'templates'


class PromptBuilder(ABC):
    """Abstract base class for prompt builders.

    Subclasses name their template files and required placeholders and
    implement ``build``.
    """

    DEFAULT_ENCODING: ClassVar[str] = 'utf-8'
    SYSTEM_TEMPLATE: ClassVar[str]
    USER_TEMPLATE: ClassVar[str]
    REQUIRED_FIELDS: ClassVar[set[str]] = set()
    MAX_CONTENT_CHARS: ClassVar[int] = 15000

    def __init__(self, template_dir: Pathish | None = None) -> None:
        """Load and check both templates.

        Args:
            template_dir: Directory holding the templates, defaults to the
                packaged templates.
        """
        directory = Path(template_dir) if template_dir else TEMPLATE_DIR
        self.system_template_file = directory / self.SYSTEM_TEMPLATE
        self.user_template_file = directory / self.USER_TEMPLATE
        self.system_template = self._load_template(self.system_template_file)
        self.user_template = self._load_template(self.user_template_file)
        self._require_template_fields(
            self._extract_placeholders(self.user_template),
            self.REQUIRED_FIELDS,
            self.user_template_file,
        )

    def _load_template(self, template_file: Path) -> str:
        """Read a template file.

        Raises:
            TemplateNotFoundError: If the template file doesn't exist.
            PromptError: If the template file cannot be read or is empty.
        """
        if not template_file.is_file():
            raise TemplateNotFoundError(template_file)

        try:
            template = template_file.read_text(encoding=self.DEFAULT_ENCODING)
        except OSError as e:
            raise PromptError(
                f'Error reading template file {template_file}: {e}',
                template_file=template_file,
                operation='load'
            ) from e
        if not template.strip():
            raise PromptError(
                f'Template file is empty: {template_file}',
                template_file=template_file,
                operation='load'
            )
        logging.debug('Template loaded from %s', template_file)
        return template

    @staticmethod
    def _extract_placeholders(template: str) -> set[str]:
        """Extracts top-level placeholder names from a format string."""
        fields: set[str] = set()
        for _, field_name, _, _ in Formatter().parse(template):
            if field_name is None:
                continue
            # Strip attribute/index access: "a.b[0]" -> "a"
            before_dot, _, _ = field_name.partition('.')
            root, _, _ = before_dot.partition('[')
            if root:
                fields.add(root)
        return fields

    @staticmethod
    def _require_template_fields(present: set[str], required: set[str], template_file: Path) -> None:
        """Ensures `required` is a subset of `present` placeholders.

        Raises:
          PromptBuildError: If any required fields are missing.
        """
        missing = required - present
        if missing:
            raise PromptBuildError(
                f'Template is missing required fields: {sorted(missing)}',
                template_file=template_file,
            )

    @classmethod
    def truncate(cls, content: str) -> str:
        return content[:cls.MAX_CONTENT_CHARS]

    def _format_user(self, values: dict[str, Any]) -> str:
        try:
            prompt = self.user_template.format(**values).strip()
        except (KeyError, ValueError, IndexError) as e:
            raise PromptBuildError(
                f'Template formatting failed: {e}',
                template_file=self.user_template_file,
            ) from e
        if not prompt:
            raise PromptBuildError(
                'Formatted prompt is empty after processing.',
                template_file=self.user_template_file,
            )
        return prompt

    @abstractmethod
    def build(self, header: Header, content: str) -> list[Message]:
        """Build the system and user messages for one document.

        Args:
            header: The document's current header.
            content: The document body.

        Returns:
            Messages ready for an InvocationRequest.

        Raises:
            PromptBuildError: If prompt building fails.
        """


class MetadataPromptBuilder(PromptBuilder):
    """Prompt asking for title, texts, bolt, themes and metaphors as JSON."""

    SYSTEM_TEMPLATE: ClassVar[str] = 'metadata_system.txt'
    USER_TEMPLATE: ClassVar[str] = 'metadata_user.txt'
    REQUIRED_FIELDS: ClassVar[set[str]] = {'existing_metadata', 'content'}
    MAX_CONTENT_CHARS: ClassVar[int] = 15000

    def build(self, header: Header, content: str) -> list[Message]:
        existing = {k: v for k, v in header.items() if k != 'radar_justifications'}
        existing_yaml = yaml.safe_dump(existing, sort_keys=False, allow_unicode=True).strip() if existing else ''
        user = self._format_user({
            'existing_metadata': existing_yaml,
            'content': self.truncate(content),
        })
        logging.debug('Built metadata prompt (content length: %d)', len(content))
        return [
            Message(role='system', content=self.system_template.strip()),
            Message(role='user', content=user),
        ]


class RadarPromptBuilder(PromptBuilder):
    """Prompt asking for labeled SCORE/JUSTIFICATION lines per category."""

    SYSTEM_TEMPLATE: ClassVar[str] = 'radar_system.txt'
    USER_TEMPLATE: ClassVar[str] = 'radar_user.txt'
    REQUIRED_FIELDS: ClassVar[set[str]] = {'title', 'texts_line', 'audio_url', 'content'}
    MAX_CONTENT_CHARS: ClassVar[int] = 25000

    def build(self, header: Header, content: str) -> list[Message]:
        texts = header.get('texts')
        if isinstance(texts, str):
            texts = [texts]
        texts_line = f'TEXTS: {", ".join(str(t) for t in texts)}' if texts else ''
        user = self._format_user({
            'title': header.get('sermon_title') or 'Untitled Sermon',
            'texts_line': texts_line,
            'audio_url': header.get('audio_url') or 'not available',
            'content': self.truncate(content),
        })
        logging.debug('Built radar prompt (content length: %d)', len(content))
        return [
            Message(role='system', content=self.system_template.strip()),
            Message(role='user', content=user),
        ]
