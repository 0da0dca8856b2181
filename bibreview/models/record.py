"""Bibliography record data model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

# Field names, as written into the document
REVIEW = "review"
ABSTRACT = "abstract"
FULL_TEXT_URL = "fullTextUrl"
URL = "url"
TITLE = "title"
AUTHOR = "author"

# Pseudo-fields resolved from the record header
KEY = "=key="
ENTRY_TYPE = "=type="

FieldValue = Union[str, list[str]]


class Decision(Enum):
    """A reviewer's verdict on a record."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MarkResult(Enum):
    """Outcome of marking a record as reviewed."""

    WRITTEN = "written"
    ALREADY_DONE = "already_done"


def format_annotation(reviewer_id: str, decision: Decision) -> str:
    """Render the literal stored in the ``review`` field.

    >>> format_annotation("alice", Decision.ACCEPTED)
    'alice: accepted,'
    """
    return f"{reviewer_id}: {decision.value},"


@dataclass
class Record:
    """Transient view of one bibliography entry.

    Built by parsing the document at a position; never cached beyond a
    single operation. ``start``/``end`` are offsets of the entry in the
    document at parse time.
    """

    key: str
    entry_type: str
    start: int
    end: int
    fields: dict[str, FieldValue] = field(default_factory=dict)

    def get(self, name: str) -> Optional[FieldValue]:
        """Return a field value (case-insensitive), or None when absent."""
        if name == KEY:
            return self.key
        if name == ENTRY_TYPE:
            return self.entry_type
        return self.fields.get(name.lower())

    def has(self, name: str) -> bool:
        """Return True if the field is present (possibly empty)."""
        return self.get(name) is not None

    @property
    def title(self) -> str:
        value = self.get(TITLE)
        return value if isinstance(value, str) else ""

    @property
    def authors(self) -> list[str]:
        value = self.get(AUTHOR)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)
