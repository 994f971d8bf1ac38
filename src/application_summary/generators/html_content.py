"""
Conversion of the declaration HTML fragment into reportlab flowables.

The declaration label is authored as HTML for the online form. reportlab
paragraphs understand a small inline markup (``<b>``, ``<i>``, ``<u>``,
``<br/>``, ``<link>``), so block elements are turned into separate paragraphs
and inline elements are rewritten into that markup. Text content is always
escaped.
"""

import re
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple
from xml.sax.saxutils import escape, quoteattr

from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Flowable, Paragraph

from ..exceptions import RenderError

BLOCK_TAGS = frozenset({'p', 'div', 'h1', 'h2', 'h3', 'h4', 'li'})
HEADING_TAGS = frozenset({'h1', 'h2', 'h3', 'h4'})
LIST_TAGS = frozenset({'ul', 'ol'})
VOID_TAGS = frozenset({'br', 'hr', 'img', 'input', 'meta', 'wbr'})
INLINE_MARKUP = {
    'b': ('<b>', '</b>'),
    'strong': ('<b>', '</b>'),
    'i': ('<i>', '</i>'),
    'em': ('<i>', '</i>'),
    'u': ('<u>', '</u>'),
}
# HTML lets these close implicitly when their parent closes
OPTIONAL_END_TAGS = frozenset({'p', 'li'})

_WHITESPACE = re.compile(r'\s+')


class DeclarationHtmlConverter(HTMLParser):
    """
    Streaming converter from an HTML fragment to a list of paragraphs.

    Expected style keys: ``body``, ``heading`` and ``bullet``.
    """

    def __init__(self, styles: Dict[str, ParagraphStyle], link_color: str = '#1d70b8'):
        super().__init__(convert_charrefs=True)
        self.styles = styles
        self.link_color = link_color
        self.flowables: List[Flowable] = []
        self._buffer: List[str] = []
        # (tag, opening markup, closing markup)
        self._stack: List[Tuple[str, str, str]] = []
        self._lists: List[List] = []
        self._pending_bullet: Optional[str] = None
        self._nested_styles: Dict[Tuple[str, int], ParagraphStyle] = {}

    def handle_starttag(self, tag, attrs):
        if tag in VOID_TAGS:
            if tag == 'br':
                self._buffer.append('<br/>')
            return

        if tag in BLOCK_TAGS or tag in LIST_TAGS:
            self._flush()

        if tag in LIST_TAGS:
            self._lists.append([tag, 0])
            self._stack.append((tag, '', ''))
        elif tag == 'li':
            if self._lists:
                self._lists[-1][1] += 1
                kind, counter = self._lists[-1]
                self._pending_bullet = f'{counter}.' if kind == 'ol' else '•'
            else:
                self._pending_bullet = '•'
            self._stack.append((tag, '', ''))
        elif tag in INLINE_MARKUP:
            opening, closing = INLINE_MARKUP[tag]
            self._stack.append((tag, opening, closing))
            self._buffer.append(opening)
        elif tag == 'a':
            href = dict(attrs).get('href')
            if href:
                opening = f'<link href={quoteattr(href)} color="{self.link_color}">'
                self._stack.append((tag, opening, '</link>'))
                self._buffer.append(opening)
            else:
                self._stack.append((tag, '', ''))
        else:
            self._stack.append((tag, '', ''))

    def handle_startendtag(self, tag, attrs):
        if tag in VOID_TAGS:
            self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag):
        if tag in VOID_TAGS:
            return

        open_tags = [entry[0] for entry in self._stack]
        if tag not in open_tags:
            raise RenderError(f"Malformed declaration HTML: unexpected closing tag </{tag}>")

        # Implicitly close trailing <p>/<li> elements; anything else is a nesting error
        while self._stack[-1][0] != tag:
            dangling = self._stack[-1][0]
            if dangling not in OPTIONAL_END_TAGS:
                raise RenderError(
                    f"Malformed declaration HTML: </{tag}> closes <{dangling}> out of order"
                )
            self._close_top()
        self._close_top()

    def handle_data(self, data):
        text = _WHITESPACE.sub(' ', data)
        if not text.strip() and not self._buffer:
            return
        self._buffer.append(escape(text))

    def close(self):
        super().close()
        while self._stack:
            self._close_top()
        self._flush()

    def _close_top(self):
        tag, _, closing = self._stack[-1]
        if tag in BLOCK_TAGS or tag in LIST_TAGS:
            # Flush while the element is still open so it picks its paragraph style
            self._flush()
            if tag in LIST_TAGS:
                self._lists.pop()
        elif closing:
            self._buffer.append(closing)
        self._stack.pop()

    def _open_inline(self) -> List[Tuple[str, str, str]]:
        return [entry for entry in self._stack if entry[1]]

    def _current_style(self) -> ParagraphStyle:
        tags = [entry[0] for entry in self._stack]
        if any(t in HEADING_TAGS for t in tags):
            return self.styles['heading']
        depth = len(self._lists)
        if depth and 'li' in tags:
            return self._nested('bullet', depth)
        if depth:
            return self._nested('body', depth)
        return self.styles['body']

    def _nested(self, name: str, depth: int) -> ParagraphStyle:
        key = (name, depth)
        if key not in self._nested_styles:
            parent = self.styles[name]
            self._nested_styles[key] = ParagraphStyle(
                name=f'{parent.name}-{depth}',
                parent=parent,
                leftIndent=parent.leftIndent * depth,
                bulletIndent=parent.bulletIndent + parent.leftIndent * (depth - 1),
            )
        return self._nested_styles[key]

    def _flush(self):
        """Emit buffered markup as a paragraph, keeping inline tags balanced."""
        open_inline = self._open_inline()
        markup = ''.join(self._buffer)
        self._buffer = []

        visible = re.sub(r'<[^>]+>', '', markup).strip()
        if visible:
            closers = ''.join(closing for _, _, closing in reversed(open_inline))
            bullet = self._pending_bullet
            self._pending_bullet = None
            try:
                self.flowables.append(
                    Paragraph(markup.strip() + closers, self._current_style(), bulletText=bullet)
                )
            except ValueError as e:
                raise RenderError(f"Malformed declaration HTML: {e}")

        # Inline formatting still open continues into the next paragraph
        self._buffer.extend(opening for _, opening, _ in open_inline)


def html_to_flowables(html: str, styles: Dict[str, ParagraphStyle]) -> List[Flowable]:
    """
    Convert an HTML fragment into paragraphs.

    Args:
        html: HTML fragment
        styles: Paragraph styles keyed ``body``, ``heading`` and ``bullet``

    Returns:
        Flowables in document order

    Raises:
        RenderError: if the HTML is malformed or has no text content
    """
    converter = DeclarationHtmlConverter(styles)
    converter.feed(html)
    converter.close()
    if not converter.flowables:
        raise RenderError("Declaration HTML has no text content")
    return converter.flowables
