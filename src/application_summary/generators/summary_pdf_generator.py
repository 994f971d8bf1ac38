"""
Application summary PDF generator.

Lays out a parsed application document as a paginated PDF: a fixed header,
the application type, one bannered section per theme and a closing consent
and declaration section. A case reference footer is added to every page after
layout has finished.
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    BaseDocTemplate, CondPageBreak, Flowable, Frame, Image, PageTemplate,
    Paragraph, Spacer, Table, TableStyle
)

from ..classifier import classify
from ..exceptions import RenderError
from ..models import (
    CompositeQuestion, DeclarationQuestion, Document, DocumentMeta,
    PhysicalInjuriesQuestion, Question, RenderedDocument, SimpleQuestion
)
from ..utils.dates import format_date, format_timestamp
from ..utils.logger import get_logger
from .document_templates import DEFAULT_STYLE, SummaryStyle
from .footer_canvas import FooterCanvas
from .html_content import html_to_flowables

logger = get_logger(__name__)

APPLICATION_TYPE_LABEL = "Application type"
PHYSICAL_INJURIES_CAPTION = "Physical injuries"
DECLARATION_TITLE = "Consent and Declaration"


def build_footer_text(meta: DocumentMeta) -> str:
    return (
        f"Case reference no.: {meta.case_reference}  "
        f"Submitted on: {format_timestamp(meta.submitted_date)}"
    )


def display_value(question: SimpleQuestion) -> str:
    """Text shown under a simple question's label."""
    if question.is_date and question.value not in (None, ""):
        return format_date(question.value)

    value = question.value_label
    if value is None or value == "":
        value = question.value

    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return "\n".join(str(v) for v in value)
    return str(value)


def _markup(text: Any) -> str:
    """Escape plain text for a reportlab paragraph, keeping line breaks."""
    return escape(str(text)).replace("\n", "<br/>")


class SummaryPdfGenerator:
    """
    Renders application documents into summary PDFs.

    Only style definitions are shared between calls; every render builds its
    own document template and output buffer, so one instance can serve
    concurrent renders.
    """

    def __init__(self, style: SummaryStyle = DEFAULT_STYLE):
        """
        Initialize the generator.

        Args:
            style: Fonts, colours and measurements to render with
        """
        self.style = style
        self.page_width, self.page_height = style.page_size
        self.styles = self._build_paragraph_styles()
        self._indented_styles: Dict[tuple, ParagraphStyle] = {}

    def generate(self, document: Document, file_path: Path) -> RenderedDocument:
        """Render a document and write the PDF to ``file_path``."""
        rendered = self.render(document)
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(rendered.content)
        return rendered

    def render(self, document: Document) -> RenderedDocument:
        """
        Render a document into PDF bytes.

        Args:
            document: Parsed application document

        Returns:
            RenderedDocument with the PDF content and page count

        Raises:
            RenderError: if the document is structurally invalid or layout fails
        """
        self._validate(document)

        buffer = BytesIO()
        footer_text = build_footer_text(document.meta)
        canvases: List[FooterCanvas] = []

        def make_canvas(*args, **kwargs):
            canv = FooterCanvas(*args, footer_text=footer_text, style=self.style, **kwargs)
            canvases.append(canv)
            return canv

        margins = self.style.margins
        doc = BaseDocTemplate(
            buffer,
            pagesize=self.style.page_size,
            leftMargin=margins['left'],
            rightMargin=margins['right'],
            topMargin=margins['top'],
            bottomMargin=margins['bottom'],
            title=self.style.title,
            subject=f"Case reference {document.meta.case_reference}",
        )
        frame = Frame(
            doc.leftMargin, doc.bottomMargin,
            doc.width, doc.height,
            leftPadding=0, bottomPadding=0,
            rightPadding=0, topPadding=0,
            id='summary_body'
        )
        doc.addPageTemplates([PageTemplate(id='application_summary', frames=[frame])])

        story = self._build_story(document)
        try:
            doc.build(story, canvasmaker=make_canvas)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(
                f"Failed to lay out summary for case {document.meta.case_reference}: {e}"
            ) from e

        content = buffer.getvalue()
        page_count = canvases[-1].page_count if canvases else 0
        if not content or page_count < 1:
            raise RenderError(f"Summary for case {document.meta.case_reference} produced no pages")

        logger.info(
            f"Rendered summary for case {document.meta.case_reference}: "
            f"{page_count} page(s), {len(content)} bytes"
        )
        return RenderedDocument(content=content, page_count=page_count)

    def _validate(self, document: Document) -> None:
        if not document.meta.case_reference:
            raise RenderError("Document has no case reference")
        if document.declaration is None:
            raise RenderError("Document has no declaration question")
        label = document.declaration.label
        if label is not None and not isinstance(label, str):
            raise RenderError(
                f"Declaration label must be HTML text, got {type(label).__name__}"
            )
        if not (label or "").strip():
            raise RenderError("Declaration question has no label")
        for index, theme in enumerate(document.themes):
            if theme.title is not None and not isinstance(theme.title, str):
                raise RenderError(
                    f"Theme '{theme.id or index}' title must be text, got {type(theme.title).__name__}"
                )
            if not (theme.title or "").strip():
                raise RenderError(f"Theme '{theme.id or index}' has no title")

    def _build_paragraph_styles(self) -> Dict[str, ParagraphStyle]:
        s = self.style
        base = getSampleStyleSheet()['Normal']
        body = ParagraphStyle(
            'summary_body', parent=base,
            fontName=s.fonts['body'], fontSize=s.body_font_size,
            leading=s.body_leading, textColor=s.text_color, alignment=TA_LEFT,
        )
        muted = ParagraphStyle(
            'summary_muted', parent=body,
            fontSize=s.header_font_size, leading=s.header_font_size * s.leading_ratio,
            textColor=s.muted_color,
        )
        return {
            'body': body,
            'label': ParagraphStyle('summary_label', parent=body, fontName=s.fonts['bold']),
            'value': body,
            'muted': muted,
            'marking': ParagraphStyle('summary_marking', parent=muted, alignment=TA_CENTER),
            'title': ParagraphStyle(
                'summary_title', parent=body,
                fontName=s.fonts['bold'], fontSize=s.title_font_size,
                leading=s.title_font_size * s.leading_ratio, textColor=s.heading_color,
            ),
            'banner': ParagraphStyle(
                'summary_banner', parent=body,
                fontName=s.fonts['bold'], fontSize=s.banner_font_size,
                leading=s.banner_font_size * s.leading_ratio, textColor=s.banner_text_color,
            ),
            'heading': ParagraphStyle(
                'summary_html_heading', parent=body,
                fontName=s.fonts['bold'], spaceBefore=6, spaceAfter=4,
            ),
            'html_body': ParagraphStyle('summary_html_body', parent=body, spaceAfter=6),
            'bullet': ParagraphStyle(
                'summary_html_bullet', parent=body,
                leftIndent=18, bulletIndent=6, spaceAfter=3,
            ),
        }

    def _indented(self, name: str, depth: int) -> ParagraphStyle:
        if depth == 0:
            return self.styles[name]
        key = (name, depth)
        if key not in self._indented_styles:
            self._indented_styles[key] = ParagraphStyle(
                f'{self.styles[name].name}_indent_{depth}',
                parent=self.styles[name],
                leftIndent=self.style.indent_unit * depth,
            )
        return self._indented_styles[key]

    def _build_story(self, document: Document) -> List[Flowable]:
        """Build the flowables for the whole document, in page order."""
        story: List[Flowable] = []
        story.extend(self._build_header())

        application_type = classify(document)
        story.extend(self._field(APPLICATION_TYPE_LABEL, application_type.label))
        story.append(Spacer(1, self.style.theme_spacing))

        for theme in document.themes:
            story.append(self._theme_break())
            story.append(self._banner(theme.title))
            story.append(Spacer(1, self.style.question_spacing))
            for question in theme.values:
                story.extend(self._question(question, depth=0))
            story.append(Spacer(1, self.style.theme_spacing))

        story.extend(self._build_declaration(document))
        return story

    def _build_header(self) -> List[Flowable]:
        """Static header, identical for every document."""
        s = self.style
        header: List[Flowable] = [Paragraph(_markup(s.protective_marking), self.styles['marking'])]

        logo = self._logo()
        if logo is not None:
            header.append(logo)

        for line in s.organisation_lines:
            header.append(Paragraph(_markup(line), self.styles['muted']))
        header.append(Spacer(1, s.header_font_size))
        header.append(Paragraph(_markup(s.title), self.styles['title']))
        header.append(Spacer(1, s.header_font_size))
        header.append(Paragraph(_markup(s.intro_text), self.styles['muted']))
        header.append(Spacer(1, s.theme_spacing))
        return header

    def _logo(self) -> Optional[Flowable]:
        path = self.style.logo_path
        if not path:
            return None
        if not Path(path).exists():
            logger.warning(f"Logo not found at {path}, rendering without it")
            return None
        width = self.style.logo_width
        logo = Image(path, width=width, height=width, kind='proportional')
        logo.hAlign = 'RIGHT'
        return logo

    def _theme_break(self) -> Flowable:
        """
        Force a page break when a banner would be stranded at the page bottom.

        The remaining frame height must hold the banner, one label and value
        pair and the safety buffer.
        """
        s = self.style
        needed = s.banner_height + s.question_spacing + 2 * s.body_leading + s.safety_buffer
        return CondPageBreak(needed)

    def _banner(self, title: str) -> Flowable:
        """Filled title bar with inverse-colour text."""
        s = self.style
        text = _markup(title)
        if s.underline_banner_title:
            text = f'<u>{text}</u>'
        banner = Table([[Paragraph(text, self.styles['banner'])]], colWidths=[s.frame_width])
        banner.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, -1), s.banner_color),
            ('LEFTPADDING', (0, 0), (-1, -1), s.banner_padding),
            ('RIGHTPADDING', (0, 0), (-1, -1), s.banner_padding),
            ('TOPPADDING', (0, 0), (-1, -1), s.banner_padding),
            ('BOTTOMPADDING', (0, 0), (-1, -1), s.banner_padding),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))
        return banner

    def _field(self, label: str, value: str, depth: int = 0) -> List[Flowable]:
        flowables: List[Flowable] = [Paragraph(_markup(label), self._indented('label', depth))]
        if value:
            flowables.append(Paragraph(_markup(value), self._indented('value', depth)))
        flowables.append(Spacer(1, self.style.question_spacing))
        return flowables

    def _question(self, question: Question, depth: int) -> List[Flowable]:
        if question.hide_on_summary or isinstance(question, DeclarationQuestion):
            return []

        if isinstance(question, CompositeQuestion):
            flowables: List[Flowable] = [
                Paragraph(_markup(question.label), self._indented('label', depth))
            ]
            for sub_question in question.values:
                flowables.extend(self._question(sub_question, depth + 1))
            return flowables

        if isinstance(question, PhysicalInjuriesQuestion):
            return self._field(PHYSICAL_INJURIES_CAPTION, "\n".join(question.value_labels), depth)

        return self._field(question.label, display_value(question), depth)

    def _build_declaration(self, document: Document) -> List[Flowable]:
        """Consent and declaration section, always last."""
        declaration = document.declaration
        html_styles = {
            'body': self.styles['html_body'],
            'heading': self.styles['heading'],
            'bullet': self.styles['bullet'],
        }

        flowables: List[Flowable] = [
            self._theme_break(),
            self._banner(DECLARATION_TITLE),
            Spacer(1, self.style.question_spacing),
        ]
        flowables.extend(html_to_flowables(declaration.label, html_styles))

        submitted = format_timestamp(document.meta.submitted_date)
        flowables.append(Paragraph(_markup(f"Submitted on: {submitted}"), self.styles['label']))

        value_label = declaration.value_label or declaration.value
        if value_label:
            flowables.append(Paragraph(_markup(value_label), self.styles['label']))
        return flowables
