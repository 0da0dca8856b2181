"""Utility functions."""

from bibreview.utils.text import clean_abstract, first_paragraph, normalize_whitespace, strip_markup

__all__ = ["clean_abstract", "first_paragraph", "normalize_whitespace", "strip_markup"]
