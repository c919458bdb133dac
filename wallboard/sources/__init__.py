"""
wallboard/sources — where the booking documents come from.
"""

from wallboard.sources.base import Document, DocumentSource, DocumentUnavailable
from wallboard.sources.file_source import FileDocumentSource
from wallboard.sources.http_source import HttpDocumentSource
from wallboard.sources.static_source import StaticDocumentSource

__all__ = [
    "Document",
    "DocumentSource",
    "DocumentUnavailable",
    "FileDocumentSource",
    "HttpDocumentSource",
    "StaticDocumentSource",
]
