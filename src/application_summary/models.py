"""
Data models for application documents.

The source JSON is a list of themes, each holding questions. Question shape is
resolved once here into one of the tagged variants below so the renderer never
has to inspect raw dictionaries.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from .exceptions import DeserializationError
from .utils.dates import parse_timestamp

DECLARATION_ID = "q-applicant-declaration"
PHYSICAL_INJURIES_ID = "q-applicant-physical-injuries"

DATE_FORMATS = frozenset({"date", "date-time", "date-month"})


class QuestionKind(Enum):
    SIMPLE = "simple"
    COMPOSITE = "composite"
    PHYSICAL_INJURIES = "physical-injuries"
    DECLARATION = "declaration"


@dataclass(frozen=True)
class SimpleQuestion:
    """A label with a single answer."""
    id: str
    label: str
    value: Any = None
    value_label: Any = None
    format: Optional[str] = None
    hide_on_summary: bool = False
    kind: QuestionKind = field(default=QuestionKind.SIMPLE, init=False)

    @property
    def is_date(self) -> bool:
        return self.format in DATE_FORMATS


@dataclass(frozen=True)
class CompositeQuestion:
    """A label grouping ordered sub-questions."""
    id: str
    label: str
    values: Tuple["Question", ...] = ()
    hide_on_summary: bool = False
    kind: QuestionKind = field(default=QuestionKind.COMPOSITE, init=False)


@dataclass(frozen=True)
class PhysicalInjuriesQuestion:
    """The list of physical injuries selected by the applicant."""
    id: str
    label: str
    value_labels: Tuple[str, ...] = ()
    hide_on_summary: bool = False
    kind: QuestionKind = field(default=QuestionKind.PHYSICAL_INJURIES, init=False)


@dataclass(frozen=True)
class DeclarationQuestion:
    """The consent and declaration block; its label is an HTML fragment."""
    id: str
    label: str
    value: Any = None
    value_label: Any = None
    hide_on_summary: bool = False
    kind: QuestionKind = field(default=QuestionKind.DECLARATION, init=False)


Question = Union[SimpleQuestion, CompositeQuestion, PhysicalInjuriesQuestion, DeclarationQuestion]


@dataclass(frozen=True)
class Theme:
    """A titled section of questions, in rendering order."""
    id: str
    title: str
    values: Tuple[Question, ...] = ()


@dataclass(frozen=True)
class DocumentMeta:
    case_reference: str
    funeral_reference: Optional[str] = None
    split_funeral: bool = False
    submitted_date: Optional[datetime] = None


@dataclass(frozen=True)
class Document:
    """
    A parsed application document.

    ``raw`` holds the source payload so a derived copy can be serialized back
    with every field the model does not interpret.
    """
    themes: Tuple[Theme, ...]
    declaration: Optional[DeclarationQuestion]
    meta: DocumentMeta
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def get_theme(self, theme_id: str) -> Optional[Theme]:
        for theme in self.themes:
            if theme.id == theme_id:
                return theme
        return None

    def find_question(self, theme_id: str, question_id: str) -> Optional[Question]:
        """Find a question in a theme, searching composite children too."""
        theme = self.get_theme(theme_id)
        if theme is None:
            return None
        for question in iter_questions(theme.values):
            if question.id == question_id:
                return question
        return None

    def to_json(self) -> bytes:
        return json.dumps(self.raw, indent=2, ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class RenderedDocument:
    """Finished PDF bytes and the number of pages they hold."""
    content: bytes
    page_count: int

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class QueueMessage:
    message_id: str
    body: str
    receipt_handle: str


def iter_questions(questions: Tuple[Question, ...]) -> Iterator[Question]:
    """Depth-first iteration over questions and composite children."""
    for question in questions:
        yield question
        if isinstance(question, CompositeQuestion):
            yield from iter_questions(question.values)


def _format_name(raw_format: Any) -> Optional[str]:
    if raw_format is None:
        return None
    if isinstance(raw_format, Mapping):
        raw_format = raw_format.get("value")
    return str(raw_format) if raw_format else None


def _hidden(data: Mapping[str, Any]) -> bool:
    if data.get("hideOnSummary"):
        return True
    meta = data.get("meta")
    return bool(isinstance(meta, Mapping) and meta.get("hideOnSummary"))


def parse_question(data: Any, path: str = "question") -> Question:
    """
    Resolve a raw question dictionary into its tagged variant.

    Args:
        data: Raw question object
        path: Location used in error messages

    Returns:
        The question variant
    """
    if not isinstance(data, Mapping):
        raise DeserializationError(f"{path} must be an object, got {type(data).__name__}")

    question_id = data.get("id")
    if not question_id:
        raise DeserializationError(f"{path} is missing 'id'")

    label = data.get("label") or ""
    hidden = _hidden(data)

    if question_id == DECLARATION_ID:
        return DeclarationQuestion(
            id=question_id,
            label=label,
            value=data.get("value"),
            value_label=data.get("valueLabel"),
            hide_on_summary=hidden,
        )

    if question_id == PHYSICAL_INJURIES_ID:
        value_labels = data.get("valueLabel")
        if value_labels is None:
            value_labels = data.get("value") or []
        if isinstance(value_labels, str):
            value_labels = [value_labels]
        return PhysicalInjuriesQuestion(
            id=question_id,
            label=label,
            value_labels=tuple(str(v) for v in value_labels),
            hide_on_summary=hidden,
        )

    sub_values = data.get("values")
    if data.get("type") == "composite" or isinstance(sub_values, list):
        if not isinstance(sub_values, list):
            raise DeserializationError(f"{path} is composite but has no 'values' list")
        return CompositeQuestion(
            id=question_id,
            label=label,
            values=tuple(
                parse_question(sub, f"{path}.values[{i}]") for i, sub in enumerate(sub_values)
            ),
            hide_on_summary=hidden,
        )

    return SimpleQuestion(
        id=question_id,
        label=label,
        value=data.get("value"),
        value_label=data.get("valueLabel"),
        format=_format_name(data.get("format")),
        hide_on_summary=hidden,
    )


def parse_theme(data: Any, index: int) -> Theme:
    path = f"themes[{index}]"
    if not isinstance(data, Mapping):
        raise DeserializationError(f"{path} must be an object, got {type(data).__name__}")

    values = data.get("values", [])
    if not isinstance(values, list):
        raise DeserializationError(f"{path}.values must be a list")

    return Theme(
        id=str(data.get("id", "")),
        title=data.get("title") or "",
        values=tuple(parse_question(q, f"{path}.values[{i}]") for i, q in enumerate(values)),
    )


def parse_meta(data: Any) -> DocumentMeta:
    if not isinstance(data, Mapping):
        raise DeserializationError("Document is missing 'meta'")

    try:
        submitted = parse_timestamp(data.get("submittedDate"))
    except ValueError as e:
        raise DeserializationError(f"meta.submittedDate is not a valid timestamp: {e}")

    funeral_reference = data.get("funeralReference") or None
    return DocumentMeta(
        case_reference=str(data.get("caseReference") or ""),
        funeral_reference=str(funeral_reference) if funeral_reference else None,
        split_funeral=bool(data.get("splitFuneral", False)),
        submitted_date=submitted,
    )


def parse_document(payload: Union[bytes, str, Mapping[str, Any]]) -> Document:
    """
    Deserialize an application document.

    Args:
        payload: Raw JSON bytes/text or an already decoded object

    Returns:
        The parsed Document

    Raises:
        DeserializationError: if the content is not a well-formed document
    """
    if isinstance(payload, (bytes, str)):
        try:
            data = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DeserializationError(f"Application document is not valid JSON: {e}")
    else:
        data = payload

    if not isinstance(data, Mapping):
        raise DeserializationError("Application document root must be a JSON object")

    raw_themes = data.get("themes")
    if not isinstance(raw_themes, list):
        raise DeserializationError("Application document is missing a 'themes' list")

    meta = parse_meta(data.get("meta"))
    themes = tuple(parse_theme(t, i) for i, t in enumerate(raw_themes))

    declaration: Optional[DeclarationQuestion] = None
    if data.get("declaration") is not None:
        top_level = parse_question(data["declaration"], "declaration")
        if not isinstance(top_level, DeclarationQuestion):
            raise DeserializationError(
                f"declaration must carry id '{DECLARATION_ID}', got '{top_level.id}'"
            )
        declaration = top_level

    # The same declaration may also be listed inside a theme
    for theme in themes:
        for question in iter_questions(theme.values):
            if not isinstance(question, DeclarationQuestion):
                continue
            if declaration is None:
                declaration = question
            elif question != declaration:
                raise DeserializationError("Document contains more than one declaration question")

    return Document(
        themes=themes,
        declaration=declaration,
        meta=meta,
        raw=dict(data),
    )
