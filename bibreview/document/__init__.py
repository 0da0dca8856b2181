"""Host document and display surface."""

from bibreview.document.buffer import BOUNDARY_RE, BibDocument, Marker
from bibreview.document.display import DisplaySurface

__all__ = ["BOUNDARY_RE", "BibDocument", "DisplaySurface", "Marker"]
