"""
Inbound message parsing and outbound message construction.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict

from ..exceptions import InvalidReferenceError

JSON_KEY_FIELD = "applicationJSONDocumentSummaryKey"
PDF_KEY_FIELD = "applicationPDFDocumentSummaryKey"
CRN_FIELD = "applicationCRN"
REGENERATE_FIELD = "regeneratePdf"

SUMMARY_FILE_NAME = "application-summary.pdf"
INVALID_LOCATION_MESSAGE = "Application JSON document location is not in a valid format (.json)"


@dataclass(frozen=True)
class SummaryRequest:
    """A parsed request to build the summary for one application document."""
    json_key: str
    regenerate_pdf: bool = False


def parse_message_body(body: str) -> SummaryRequest:
    """
    Parse an inbound queue message body.

    Args:
        body: JSON text with ``applicationJSONDocumentSummaryKey`` and an
            optional boolean ``regeneratePdf``

    Returns:
        SummaryRequest with the key exactly as sent

    Raises:
        InvalidReferenceError: if the body is not JSON or the key is not a .json key
    """
    try:
        payload = json.loads(body)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidReferenceError(f"Message body is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise InvalidReferenceError("Message body must be a JSON object")

    json_key = payload.get(JSON_KEY_FIELD)
    if not isinstance(json_key, str) or not json_key.endswith(".json"):
        raise InvalidReferenceError(INVALID_LOCATION_MESSAGE)

    regenerate = payload.get(REGENERATE_FIELD, False)
    if not isinstance(regenerate, bool):
        raise InvalidReferenceError(f"{REGENERATE_FIELD} must be a boolean")

    return SummaryRequest(json_key=json_key, regenerate_pdf=regenerate)


def parse_json_location(body: str) -> str:
    """Extract the source document key from an inbound message body."""
    return parse_message_body(body).json_key


def generate_pdf_location(case_reference: str) -> str:
    """
    Output key for a case's summary PDF.

    The backslash separated case reference contributes its first and last
    parts: ``23\\700001`` becomes ``23-700001/application-summary.pdf``.
    """
    if not case_reference or not case_reference.strip():
        raise InvalidReferenceError("Case reference is empty")

    parts = case_reference.split("\\")
    return f"{parts[0]}-{parts[-1]}/{SUMMARY_FILE_NAME}"


def build_notification(pdf_key: str, json_key: str, case_reference: str) -> Dict[str, Any]:
    """Downstream notification payload for a stored summary."""
    return {
        PDF_KEY_FIELD: pdf_key,
        JSON_KEY_FIELD: json_key,
        CRN_FIELD: case_reference,
    }
