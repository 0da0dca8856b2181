"""bibreview - systematic literature review over a BibTeX file.

Walks the entries of a bibliography, fills in missing abstracts and
full-text links from the publisher's site, and records each reviewer's
accept/reject decision in the entry's ``review`` field.
"""

__version__ = "1.0.0"

from bibreview.config import ReviewContext, Settings
from bibreview.models.record import Decision, MarkResult, Record

__all__ = ["Decision", "MarkResult", "Record", "ReviewContext", "Settings", "__version__"]
