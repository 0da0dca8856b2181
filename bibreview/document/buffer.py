"""In-memory bibliography document with a point and live markers."""

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

# Start of a bibliography entry: ``@article{`` at the beginning of a line
BOUNDARY_RE = re.compile(r"^@[A-Za-z0-9]+\{", re.MULTILINE)

Pattern = Union[str, "re.Pattern[str]"]


class Marker:
    """A document position that follows insertions made before it."""

    def __init__(self, document: "BibDocument", position: int):
        self._document = document
        self.position = position

    def __int__(self) -> int:
        return self.position

    def __repr__(self) -> str:
        return f"Marker({self.position})"

    def release(self) -> None:
        """Stop tracking edits."""
        self._document._release(self)


class BibDocument:
    """Text buffer for a ``.bib`` file.

    Mirrors the editor primitives the review engine needs: a single
    ``point``, regex searches that move it, insertion at point, and
    ``excursion()`` to restore it afterwards.
    """

    def __init__(self, text: str = "", path: Optional[Path] = None):
        self._text = text
        self.path = path
        self._point = 0
        self._markers: list[Marker] = []
        self.revision = 0
        self.modified = False

    @classmethod
    def from_file(cls, path: Path) -> "BibDocument":
        """Load a document from disk."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        logger.debug("Loaded %s (%d chars)", path, len(text))
        return cls(text, path)

    # ── Accessors ─────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        return self._text

    @property
    def point(self) -> int:
        return self._point

    def __len__(self) -> int:
        return len(self._text)

    def goto(self, position: int) -> None:
        """Move point, clamped to the document bounds."""
        self._point = max(0, min(int(position), len(self._text)))

    # ── Searching ─────────────────────────────────────────────────────

    @staticmethod
    def _compile(pattern: Pattern) -> "re.Pattern[str]":
        if isinstance(pattern, str):
            return re.compile(pattern, re.MULTILINE)
        return pattern

    def search_forward(
        self, pattern: Pattern, bound: Optional[int] = None
    ) -> Optional["re.Match[str]"]:
        """Find the first match at or after point and move point to its end."""
        regex = self._compile(pattern)
        end = len(self._text) if bound is None else bound
        match = regex.search(self._text, self._point, end)
        if match is None:
            return None
        self._point = match.end()
        return match

    def search_backward(
        self, pattern: Pattern, bound: int = 0
    ) -> Optional["re.Match[str]"]:
        """Find the last match starting before point and move point to its start."""
        last = self.last_match_before(pattern, self._point, bound)
        if last is None:
            return None
        self._point = last.start()
        return last

    def last_match_before(
        self, pattern: Pattern, position: int, bound: int = 0
    ) -> Optional["re.Match[str]"]:
        """Return the last match starting in ``[bound, position)`` (point untouched)."""
        regex = self._compile(pattern)
        last = None
        for match in regex.finditer(self._text, bound):
            if match.start() >= position:
                break
            last = match
        return last

    def looking_at(self, pattern: Pattern) -> Optional["re.Match[str]"]:
        """Match ``pattern`` anchored at point without moving it."""
        return self._compile(pattern).match(self._text, self._point)

    # ── Editing ───────────────────────────────────────────────────────

    def insert(self, text: str) -> None:
        """Insert text at point; point and later markers move past it."""
        if not text:
            return
        pos = self._point
        self._text = self._text[:pos] + text + self._text[pos:]
        for marker in self._markers:
            if marker.position > pos:
                marker.position += len(text)
        self._point = pos + len(text)
        self.revision += 1
        self.modified = True

    def marker(self, position: Optional[int] = None) -> Marker:
        """Create a live marker at ``position`` (default: point)."""
        marker = Marker(self, self._point if position is None else position)
        self._markers.append(marker)
        return marker

    def _release(self, marker: Marker) -> None:
        if marker in self._markers:
            self._markers.remove(marker)

    @contextmanager
    def excursion(self) -> Iterator["BibDocument"]:
        """Restore point on exit, following any edits made meanwhile."""
        saved = self.marker()
        try:
            yield self
        finally:
            self._point = saved.position
            saved.release()

    # ── Persistence ───────────────────────────────────────────────────

    def save(self, path: Optional[Path] = None) -> Path:
        """Write the document back to disk.

        Raises:
            ValueError: If the document has no path and none is given
        """
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("Document has no path to save to")
        with open(target, "w", encoding="utf-8") as f:
            f.write(self._text)
        self.path = target
        self.modified = False
        logger.debug("Saved %s", target)
        return target
