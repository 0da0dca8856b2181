"""Display surface showing the record under review."""

from bibreview.models.record import ABSTRACT, REVIEW, Record


class DisplaySurface:
    """Clearable, insertable text region with its own cursor.

    The point here is independent of the document's point, so parsing
    the document never moves the reviewer's place in the display.
    """

    def __init__(self):
        self._text = ""
        self.point = 0

    @property
    def text(self) -> str:
        return self._text

    def clear(self) -> None:
        self._text = ""
        self.point = 0

    def insert(self, text: str) -> None:
        self._text = self._text[: self.point] + text + self._text[self.point :]
        self.point += len(text)

    def show(self, record: Record) -> None:
        """Replace the contents with the record's summary."""
        self.clear()
        self.insert(record.title)
        self.insert("\n\n")
        # Each author is followed by ", " (a single author renders as "Name, ")
        self.insert("".join(f"{name}, " for name in record.authors))

        abstract = record.get(ABSTRACT)
        if isinstance(abstract, str) and abstract.strip():
            self.insert("\n\n")
            self.insert(abstract.strip())

        review = record.get(REVIEW)
        if isinstance(review, str) and review.strip():
            self.insert("\n\n")
            self.insert(f"Review: {review.strip()}")
        self.point = 0
