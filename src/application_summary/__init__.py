"""
Application summary pipeline.

Turns application form JSON documents into paginated PDF summaries in
response to queue messages.
"""

from .classifier import ApplicationType, classify
from .models import Document, RenderedDocument, parse_document

__version__ = "1.0.0"

__all__ = [
    'ApplicationType',
    'classify',
    'Document',
    'RenderedDocument',
    'parse_document',
]
