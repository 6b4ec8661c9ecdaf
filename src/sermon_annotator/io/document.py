"""Frontmatter documents and the idempotent evaluation-section rewrite.

A document is a YAML frontmatter block delimited by ``---`` lines followed by
an opaque Markdown body. Rewriting replaces the header wholesale, removes
every prior instance of the generated section, and places exactly one fresh
section at the top of the body.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from ..processing.entities import NO_EVALUATION, RADAR_CATEGORIES, format_category_name
from .exceptions import MalformedDocument

FRONTMATTER_DELIMITER = '---'

# Known sermon keys are written first, in this order.
HEADER_KEY_ORDER: tuple[str, ...] = (
    'sermon_title',
    'preached_on',
    'texts',
    'bolt',
    'themes',
    'metaphors',
    'radar_score',
    'radar_info',
    'audio_url',
    'manuscript_path',
)

HEADING_PATTERN = re.compile(r'^ {0,3}(#{1,6})[ \t]+(.*?)[ \t]*$')
FENCE_PATTERN = re.compile(r'^[ \t]*(```|~~~)')


@dataclass
class Document:
    """A parsed document.

    Attributes:
        header: Frontmatter mapping (empty when the document has none).
        body: Everything after the frontmatter, untouched.
        has_frontmatter: Whether a frontmatter block was present.
    """
    header: dict[str, Any] = field(default_factory=dict)
    body: str = ''
    has_frontmatter: bool = False


def section_slug(section_name: str) -> str:
    """'Radar Analysis' -> 'radar-analysis'."""
    return re.sub(r'[^a-z0-9]+', '-', section_name.lower()).strip('-')


def end_marker(section_name: str) -> str:
    return f'<!-- end: {section_slug(section_name)} -->'


def parse_document(text: str, doc_id: str | None = None) -> Document:
    """Split a document into its frontmatter header and body.

    Args:
        text: Full document text.
        doc_id: Optional identifier for error context.

    Returns:
        The parsed Document.

    Raises:
        MalformedDocument: If the frontmatter is unterminated, not valid YAML,
            or not a mapping.
    """
    if text.startswith('\ufeff'):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
        return Document(header={}, body=text, has_frontmatter=False)

    closing = None
    for index in range(1, len(lines)):
        if lines[index].rstrip() in (FRONTMATTER_DELIMITER, '...'):
            closing = index
            break
    if closing is None:
        raise MalformedDocument(
            'Frontmatter block is not terminated',
            file_path=doc_id,
            reason='unterminated',
        )

    raw_header = ''.join(lines[1:closing])
    try:
        header = yaml.safe_load(raw_header)
    except yaml.YAMLError as e:
        raise MalformedDocument(
            f'Frontmatter is not valid YAML: {e}',
            file_path=doc_id,
            reason='yaml',
        ) from e

    if header is None:
        header = {}
    if not isinstance(header, dict):
        raise MalformedDocument(
            f'Frontmatter must be a mapping, got {type(header).__name__}',
            file_path=doc_id,
            reason='not_mapping',
        )

    return Document(header=header, body=''.join(lines[closing + 1:]), has_frontmatter=True)


def order_header(header: Mapping[str, Any]) -> dict[str, Any]:
    """Return the header with keys in canonical order.

    Known sermon keys come first in a fixed order, the rest alphabetically;
    radar_score keys follow the category order.
    """
    ordered: dict[str, Any] = {}
    for key in HEADER_KEY_ORDER:
        if key in header:
            ordered[key] = header[key]
    for key in sorted((k for k in header if k not in HEADER_KEY_ORDER), key=str):
        ordered[key] = header[key]

    scores = ordered.get('radar_score')
    if isinstance(scores, Mapping):
        known = [c for c in RADAR_CATEGORIES if c in scores]
        extra = sorted((k for k in scores if k not in RADAR_CATEGORIES), key=str)
        ordered['radar_score'] = {k: scores[k] for k in known + extra}
    return ordered


def dump_header(header: Mapping[str, Any]) -> str:
    """Serialize a header to YAML in canonical order."""
    if not header:
        return ''
    return yaml.safe_dump(
        order_header(header),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1000,
    )


def strip_sections(body: str, section_name: str) -> str:
    """Remove every instance of a generated section from a body.

    A section runs from its ``## <section_name>`` heading to its end marker.
    Sections written without a marker run to the next heading of rank 1 or 2,
    or to the end of the body.
    """
    marker = end_marker(section_name)
    lines = body.splitlines(keepends=True)
    kept: list[str] = []
    in_section = False
    in_fence = False

    for line in lines:
        stripped = line.strip()
        is_fence = FENCE_PATTERN.match(line) is not None
        heading = None
        if not in_fence and not is_fence:
            heading = HEADING_PATTERN.match(line.rstrip('\r\n'))
        if is_fence:
            in_fence = not in_fence

        if stripped == marker:
            in_section = False
            continue
        if heading and _is_section_heading(heading, section_name):
            in_section = True
            continue
        if in_section:
            if heading and len(heading.group(1)) <= 2:
                in_section = False
            else:
                continue
        kept.append(line)

    return ''.join(kept)


def _is_section_heading(heading: re.Match[str], section_name: str) -> bool:
    return len(heading.group(1)) == 2 and heading.group(2).strip() == section_name


def _format_score(score: Any) -> str:
    if isinstance(score, float) and score.is_integer():
        return str(int(score))
    return str(score)


def render_radar_section(
    scores: Mapping[str, Any],
    justifications: Mapping[str, str | None],
    model_name: str,
    timestamp: str,
    section_name: str = 'Radar Analysis',
) -> str:
    """Render the generated evaluation section.

    Args:
        scores: Category to score; categories without a score are skipped.
        justifications: Category to justification text.
        model_name: Model that produced the evaluation.
        timestamp: Generation timestamp, supplied by the caller.
        section_name: Section heading text.

    Returns:
        The section text, terminated by its end marker and a newline.
    """
    lines = [
        f'## {section_name}',
        f'_Generated by model: {model_name} | {timestamp}_',
        '',
    ]
    for category in RADAR_CATEGORIES:
        if scores.get(category) is None:
            continue
        # Keep each justification on its bullet line.
        justification = ' '.join((justifications.get(category) or NO_EVALUATION).split())
        lines.append(
            f'- **{format_category_name(category)} ({_format_score(scores[category])}/10)**: '
            f'{justification}'
        )
    lines.append('')
    lines.append(end_marker(section_name))
    return '\n'.join(lines) + '\n'


def render_document(header: Mapping[str, Any], body: str, section: str | None = None) -> str:
    """Assemble frontmatter, optional section and body into document text."""
    parts = [f'{FRONTMATTER_DELIMITER}\n{dump_header(header)}{FRONTMATTER_DELIMITER}\n\n']
    if section:
        parts.append(section.rstrip('\n') + '\n\n')
    content = body.strip()
    if content:
        parts.append(content + '\n')
    return ''.join(parts)


def rewrite(
    text: str,
    header: Mapping[str, Any] | None,
    section_name: str,
    section_body: str | None,
    doc_id: str | None = None,
) -> str:
    """Rewrite a document with a new header and a fresh generated section.

    Rewriting is idempotent: the same inputs always produce the same bytes,
    and the output contains at most one instance of the section.

    Args:
        text: Current document text.
        header: Replacement header; None keeps the existing header.
        section_name: Heading text of the generated section.
        section_body: Rendered section; None leaves existing sections in place.
        doc_id: Optional identifier for error context.

    Returns:
        The new document text.

    Raises:
        MalformedDocument: If the existing frontmatter cannot be parsed.
    """
    document = parse_document(text, doc_id)
    body = document.body
    if section_body is not None:
        body = strip_sections(body, section_name)
        logging.debug('Replacing %s section in %s', section_name, doc_id or 'document')
    new_header = dict(document.header if header is None else header)
    new_header.pop('radar_justifications', None)
    return render_document(new_header, body, section_body)
