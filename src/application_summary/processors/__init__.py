"""
Queue message processing for application summaries.
"""

from .messages import (
    SummaryRequest, build_notification, generate_pdf_location,
    parse_json_location, parse_message_body
)
from .pipeline import ApplicationPipeline, MessageResult, MessageState, NotificationStatus
from .split_application import derive_split_key, needs_split, split_for_funeral

__all__ = [
    'SummaryRequest',
    'build_notification',
    'generate_pdf_location',
    'parse_json_location',
    'parse_message_body',
    'ApplicationPipeline',
    'MessageResult',
    'MessageState',
    'NotificationStatus',
    'derive_split_key',
    'needs_split',
    'split_for_funeral',
]
