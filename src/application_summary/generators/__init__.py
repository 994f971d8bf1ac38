"""
PDF generation for application summaries.
"""

from .document_templates import DEFAULT_STYLE, STYLES, SummaryStyle, get_style
from .footer_canvas import FooterCanvas
from .html_content import html_to_flowables
from .summary_pdf_generator import SummaryPdfGenerator, build_footer_text, display_value

__all__ = [
    'DEFAULT_STYLE',
    'STYLES',
    'SummaryStyle',
    'get_style',
    'FooterCanvas',
    'html_to_flowables',
    'SummaryPdfGenerator',
    'build_footer_text',
    'display_value',
]
