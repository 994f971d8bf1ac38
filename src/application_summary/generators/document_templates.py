"""
Style configurations for the application summary PDF.

Historical versions of the summary differed only cosmetically (banner colour,
whether the organisation logo is drawn, heading decoration). Those differences
live here as data; the renderer's control flow is the same for every style.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from reportlab.lib.colors import Color, HexColor, white
from reportlab.lib.pagesizes import A4

ORGANISATION_LINES = (
    "Tel: 0300 003 3601",
    "CICA, Alexander Bain House",
    "Atlantic Quay, 15 York Street",
    "Glasgow G2 8JQ",
    "www.cica.gov.uk",
)

INTRO_TEXT = (
    "This document provides a summary of the information supplied to CICA in "
    "your application form. Please contact us on 0300 003 3601 if you require "
    "any changes to be made."
)


@dataclass(frozen=True)
class SummaryStyle:
    """Fonts, colours and layout measurements for the summary document."""
    name: str
    page_size: Tuple[float, float] = A4
    margins: Dict[str, float] = field(default_factory=lambda: {
        'top': 72, 'bottom': 72, 'left': 72, 'right': 72
    })
    fonts: Dict[str, str] = field(default_factory=lambda: {
        'body': 'Helvetica',
        'bold': 'Helvetica-Bold',
        'footer': 'Helvetica',
    })

    # Static header
    protective_marking: str = "Protect-Personal"
    organisation_lines: Tuple[str, ...] = ORGANISATION_LINES
    title: str = "CICA Summary Application Form"
    intro_text: str = INTRO_TEXT
    logo_path: Optional[str] = None
    logo_width: float = 80

    # Font sizes and leading
    header_font_size: float = 10
    title_font_size: float = 25
    banner_font_size: float = 17.5
    body_font_size: float = 12.5
    footer_font_size: float = 8
    leading_ratio: float = 1.2

    # Colours
    muted_color: Color = field(default_factory=lambda: HexColor('#808080'))
    heading_color: Color = field(default_factory=lambda: HexColor('#444444'))
    text_color: Color = field(default_factory=lambda: HexColor('#0b0c0c'))
    banner_color: Color = field(default_factory=lambda: HexColor('#1d70b8'))
    banner_text_color: Color = field(default_factory=lambda: white)
    banner_padding: float = 6
    underline_banner_title: bool = False

    # Layout
    indent_unit: float = 30
    question_spacing: float = 6
    theme_spacing: float = 12
    safety_buffer: float = 20
    footer_offset: float = 30

    @property
    def body_leading(self) -> float:
        return self.body_font_size * self.leading_ratio

    @property
    def banner_height(self) -> float:
        return self.banner_font_size * self.leading_ratio + 2 * self.banner_padding

    @property
    def frame_width(self) -> float:
        return self.page_size[0] - self.margins['left'] - self.margins['right']

    @property
    def frame_height(self) -> float:
        return self.page_size[1] - self.margins['top'] - self.margins['bottom']


DEFAULT_STYLE = SummaryStyle(name="default")

# Grey banners with underlined titles and the organisation logo
BANNER_STYLE = replace(
    DEFAULT_STYLE,
    name="banner",
    banner_color=HexColor('#444444'),
    underline_banner_title=True,
    logo_path="resources/cicaLogo.png",
)

STYLES: Dict[str, SummaryStyle] = {
    DEFAULT_STYLE.name: DEFAULT_STYLE,
    BANNER_STYLE.name: BANNER_STYLE,
}


def get_style(name: str) -> SummaryStyle:
    """
    Look up a style preset by name.

    Raises:
        KeyError: if no preset with that name exists
    """
    try:
        return STYLES[name]
    except KeyError:
        raise KeyError(f"Unknown summary style '{name}'. Available: {', '.join(sorted(STYLES))}")
