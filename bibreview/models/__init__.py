"""Data models."""

from bibreview.models.record import Decision, MarkResult, Record

__all__ = ["Decision", "MarkResult", "Record"]
