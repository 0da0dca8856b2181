"""Field-level access to records in a bibliography document."""

import logging
import re
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import bibtexparser
from bibtexparser.bparser import BibTexParser

from bibreview.document.buffer import BOUNDARY_RE, BibDocument
from bibreview.errors import FieldNotFoundError, ParseError, RecordNotFoundError
from bibreview.models.record import AUTHOR, FieldValue, Record

logger = logging.getLogger(__name__)

# ``@type{key,`` or ``@type{key}``; group 3 is the separator after the key
HEADER_RE = re.compile(r"@([A-Za-z0-9]+)\{\s*([^,\s{}]*)\s*(,|\})")

AUTHOR_SEP_RE = re.compile(r"\s+and\s+")


def _field_opening(name: str) -> "re.Pattern[str]":
    """Pattern ending just after the opening delimiter of ``name``'s value."""
    return re.compile(
        rf"(?:^|,)[ \t]*{re.escape(name)}\s*=\s*[{{\"]",
        re.IGNORECASE | re.MULTILINE,
    )


def _normalize(name: str, value: Any) -> FieldValue:
    text = " ".join(str(value).split())
    if name == AUTHOR and text:
        return AUTHOR_SEP_RE.split(text)
    return text


class FieldStore:
    """Parse records out of a document and write field text back into it.

    Every read re-parses the document, so a returned :class:`Record` is
    only valid until the next edit.
    """

    def __init__(self, document: BibDocument):
        self.document = document

    # ── Parsing ───────────────────────────────────────────────────────

    def span_at(self, position: int) -> tuple[int, int]:
        """Return ``(start, end)`` of the record containing ``position``.

        Raises:
            ParseError: If no record boundary is found at or before it
        """
        doc = self.document
        boundary = doc.last_match_before(BOUNDARY_RE, int(position) + 1)
        if boundary is None:
            raise ParseError(f"No record boundary at or before offset {int(position)}")
        following = BOUNDARY_RE.search(doc.text, boundary.end())
        end = following.start() if following else len(doc)
        return boundary.start(), end

    def parse(self, cursor: Optional[int] = None) -> Record:
        """Parse the record at ``cursor`` (default: the document's point).

        Raises:
            ParseError: If there is no record there or it cannot be read
        """
        position = self.document.point if cursor is None else int(cursor)
        start, end = self.span_at(position)
        chunk = self.document.text[start:end]

        # BibTexParser keeps state between parses, so use a fresh one
        parser = BibTexParser(common_strings=True, ignore_nonstandard_types=False)
        entries = bibtexparser.loads(chunk, parser=parser).entries
        if not entries:
            raise ParseError(f"Malformed record at offset {start}")

        entry = entries[0]
        fields: dict[str, FieldValue] = {}
        for name, value in entry.items():
            if name in ("ID", "ENTRYTYPE"):
                continue
            fields[name.lower()] = _normalize(name.lower(), value)

        return Record(
            key=entry.get("ID", ""),
            entry_type=entry.get("ENTRYTYPE", "").lower(),
            start=start,
            end=end,
            fields=fields,
        )

    def iter_records(self) -> Iterator[Record]:
        """Yield every record in document order.

        Edits made by the consumer inside the yielded record are allowed;
        the next record is located after the current one's start.
        """
        position = 0
        while True:
            match = BOUNDARY_RE.search(self.document.text, position)
            if match is None:
                return
            try:
                record = self.parse(match.start())
            except ParseError as e:
                logger.warning("Skipping unreadable record: %s", e)
                position = match.end()
                continue
            yield record
            position = record.start + 1

    def find(self, key: str) -> Record:
        """Return the record whose citation key is ``key``.

        Raises:
            RecordNotFoundError: If no record has that key
        """
        for record in self.iter_records():
            if record.key == key:
                return record
        raise RecordNotFoundError(key)

    # ── Field access ──────────────────────────────────────────────────

    @staticmethod
    def get(record: Record, name: str) -> Optional[FieldValue]:
        """Return the field value, or None when absent."""
        return record.get(name)

    @staticmethod
    def has(record: Record, name: str) -> bool:
        return record.has(name)

    def _field_region(self, name: str, start: int, end: int) -> Optional["re.Match[str]"]:
        """Last opening of ``name`` within ``[start, end)``."""
        return self.document.last_match_before(_field_opening(name), end, start)

    @contextmanager
    def at(self, record: Record) -> Iterator[BibDocument]:
        """Run a block with point on ``record``; the caller's point is restored."""
        with self.document.excursion() as doc:
            doc.goto(record.start)
            yield doc

    # ── Writing ───────────────────────────────────────────────────────

    def write(self, name: str, content: str) -> None:
        """Insert ``content`` at the start of ``name``'s value in the record at point.

        In a ``"..."`` value each literal ``"`` is written as ``{"}`` so the
        value stays closed.

        Raises:
            FieldNotFoundError: If the record has no such field
            ParseError: If point is not inside a record
        """
        start, end = self.span_at(self.document.point)
        region = self._field_region(name, start, end)
        if region is None:
            raise FieldNotFoundError(name)
        if region.group(0).endswith('"'):
            content = content.replace('"', '{"}')
        with self.document.excursion() as doc:
            doc.goto(region.end())
            doc.insert(content)
        logger.debug("Wrote %d chars into '%s' at %d", len(content), name, region.end())

    def add_field_if_absent(self, name: str, record: Record) -> bool:
        """Insert an empty ``name = {}`` into the record unless it is already there.

        A field counts as present when the parsed record has it, which also
        covers bare values such as ``year = 2024``.

        Returns:
            True if the field was added, False if it already existed
        """
        start, end = self.span_at(record.start)
        if self._field_region(name, start, end) is not None or self.parse(start).has(name):
            return False

        header = HEADER_RE.match(self.document.text, start)
        if header is None:
            raise ParseError(f"Malformed record header at offset {start}")

        with self.document.excursion() as doc:
            if header.group(3) == ",":
                doc.goto(header.end())
                doc.insert(f"\n  {name} = {{}},")
            else:
                doc.goto(header.start(3))
                doc.insert(f",\n  {name} = {{}}\n")
        logger.debug("Added empty field '%s' to %s", name, record.key)
        return True
