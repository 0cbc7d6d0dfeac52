"""
Content derivation and version history for notes.

Everything here is pure: it reads values and returns new ones, so the
service layer decides when to call it and when to persist the result.

- derive_stats(): excerpt, word count and reading time for a body
- apply_content_update(): snapshot the old content and bump the version
  when (and only when) the body changes
"""

import html
import math
import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

import bleach
import markdown

from notevault.models.note import ContentType


# Block ends that read as a word break once the tags are stripped
BLOCK_BREAK_PATTERN = re.compile(
    r'</(?:p|div|h[1-6]|li|ul|ol|blockquote|pre|tr|td|th|table)\s*>|<br\s*/?>',
    re.IGNORECASE,
)
WHITESPACE_PATTERN = re.compile(r'\s+')
WORD_PATTERN = re.compile(r'\w+(?:[\'’-]\w+)*')


@dataclass(frozen=True)
class ContentStats:
    """Values derived from a note body."""

    excerpt: str
    word_count: int
    reading_time: int  # minutes


def strip_html(text: str) -> str:
    """Visible text of an HTML fragment, entities decoded."""
    text = BLOCK_BREAK_PATTERN.sub(lambda m: m.group(0) + ' ', text)
    return html.unescape(bleach.clean(text, tags=[], strip=True))


def to_plain_text(content: str, content_type: ContentType | str) -> str:
    """Strip markup so stats are computed over the visible text."""
    content_type = ContentType(content_type)
    text = content
    if content_type == ContentType.MARKDOWN:
        text = strip_html(markdown.markdown(text, extensions=['fenced_code', 'tables'], output_format='html'))
    elif content_type == ContentType.RICH:
        text = strip_html(text)
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def make_excerpt(text: str, length: int) -> str:
    """Cut plain text at a word boundary, adding an ellipsis when shortened."""
    if len(text) <= length:
        return text
    cut = text[:length].rsplit(' ', 1)[0] or text[:length]
    return cut.rstrip(' .,;:') + '...'


def derive_stats(
    content: str,
    content_type: ContentType | str,
    *,
    excerpt_length: int = 200,
    words_per_minute: int = 200,
) -> ContentStats:
    """Derive excerpt, word count and reading time for a note body."""
    text = to_plain_text(content, content_type)
    word_count = len(WORD_PATTERN.findall(text))
    reading_time = math.ceil(word_count / words_per_minute) if word_count else 0
    return ContentStats(
        excerpt=make_excerpt(text, excerpt_length),
        word_count=word_count,
        reading_time=reading_time,
    )


@dataclass(frozen=True)
class VersionedContent:
    """The versioned part of a note: what a content edit reads and writes."""

    title: str
    content: str
    content_type: ContentType
    version: int = 1
    edit_count: int = 0
    previous_versions: tuple[dict, ...] = field(default_factory=tuple)

    @classmethod
    def from_note(cls, note) -> "VersionedContent":
        return cls(
            title=note.title,
            content=note.content,
            content_type=ContentType(note.content_type),
            version=note.version,
            edit_count=note.edit_count,
            previous_versions=tuple(note.previous_versions or ()),
        )

    def snapshot(self, modified_at: datetime, modified_by: int | None) -> dict:
        """History entry for the state as it is *before* an edit."""
        return {
            "version": self.version,
            "title": self.title,
            "content": self.content,
            "modified_at": modified_at.isoformat(),
            "modified_by": modified_by,
        }


def apply_content_update(
    current: VersionedContent,
    title: str | None,
    content: str | None,
    editor_id: int | None,
    *,
    content_type: ContentType | str | None = None,
    now: datetime | None = None,
    history_limit: int = 10,
) -> VersionedContent:
    """Return the next versioned state for an edit.

    A change to the body (or how it is interpreted) snapshots the current
    state, appends it to the history, evicts the oldest entries beyond
    ``history_limit`` and bumps ``version`` and ``edit_count`` by one.
    A title-only change is applied without touching the history.
    """
    new_title = current.title if title is None else title
    new_content = current.content if content is None else content
    new_type = current.content_type if content_type is None else ContentType(content_type)

    if new_content == current.content and new_type == current.content_type:
        return replace(current, title=new_title)

    entry = current.snapshot(now or datetime.now(timezone.utc), editor_id)
    history = (current.previous_versions + (entry,))[-history_limit:] if history_limit > 0 else ()

    return VersionedContent(
        title=new_title,
        content=new_content,
        content_type=new_type,
        version=current.version + 1,
        edit_count=current.edit_count + 1,
        previous_versions=history,
    )
