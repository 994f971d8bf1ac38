"""
Canvas that defers page output so a footer can be stamped after layout.

Layout runs first and every finished page is buffered instead of written.
When the document is saved, a second pass visits each buffered page, draws the
footer inside the bottom margin and only then flushes the page. The footer
therefore never takes part in pagination.
"""

from typing import Any, Dict, List

from reportlab.pdfgen import canvas

from .document_templates import DEFAULT_STYLE, SummaryStyle


class FooterCanvas(canvas.Canvas):
    """reportlab canvas that overlays a centred footer on every page."""

    def __init__(self, *args, footer_text: str = "", style: SummaryStyle = DEFAULT_STYLE, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self.footer_text = footer_text
        self.style = style
        self._saved_page_states: List[Dict[str, Any]] = []

    @property
    def page_count(self) -> int:
        return len(self._saved_page_states)

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer()
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_footer(self):
        """Draw the footer line at a fixed offset from the page bottom."""
        page_width = self._pagesize[0]
        self.saveState()
        self.setFont(self.style.fonts['footer'], self.style.footer_font_size)
        self.setFillColor(self.style.muted_color)
        self.drawCentredString(page_width / 2, self.style.footer_offset, self.footer_text)
        self.restoreState()
