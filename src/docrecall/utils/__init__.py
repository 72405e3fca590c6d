"""Utility functions for DocRecall."""

from docrecall.utils.filtering import filter_documents
from docrecall.utils.text import describe, parse_tags

__all__ = ["filter_documents", "describe", "parse_tags"]
