"""
Object store and message queue collaborators.

The AWS implementations live in ``services.aws`` and are imported explicitly
by the entry point so the pipeline itself does not depend on aioboto3.
"""

from .base import MessageQueue, ObjectStore, StoredObject

__all__ = [
    'MessageQueue',
    'ObjectStore',
    'StoredObject',
]
