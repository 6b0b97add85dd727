"""
Narrow "parse markup -> queryable tree" interface.

The extractor and link discoverer only depend on the MarkupDocument and
MarkupNode protocols below, so tests can hand them synthetic trees. The real
implementation is backed by lxml.html.
"""

import re
from functools import lru_cache
from typing import List, Optional, Protocol

from lxml import etree, html
from lxml.cssselect import CSSSelector

# Elements whose text is never visible
_SKIPPED_TAGS = {'script', 'style', 'noscript', 'template', 'head', 'title'}

# Elements rendered on their own line(s)
_BLOCK_TAGS = {
    'address', 'article', 'aside', 'blockquote', 'dd', 'div', 'dl', 'dt',
    'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3',
    'h4', 'h5', 'h6', 'header', 'hr', 'li', 'main', 'nav', 'ol', 'p', 'pre',
    'section', 'table', 'tr', 'td', 'th', 'ul', 'body', 'html'
}

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')


class MarkupNode(Protocol):
    """An element of a parsed document."""

    def text(self) -> str:
        """Rendered text, with line breaks where a browser would put them."""
        ...

    def raw_text(self) -> str:
        """All descendant text concatenated, markup ignored."""
        ...

    def get(self, attribute: str) -> Optional[str]:
        ...


class MarkupDocument(Protocol):
    """A parsed page."""

    def title(self) -> Optional[str]:
        ...

    def select_first(self, selector: str) -> Optional[MarkupNode]:
        """First element matching a simple selector: '#id', '.class' or 'tag'."""
        ...

    def anchors(self) -> List[MarkupNode]:
        """All <a> elements in document order."""
        ...

    def body(self) -> MarkupNode:
        ...


def compile_selector(selector: str) -> CSSSelector:
    """
    Compiled CSS selector for HTML trees, cached per selector string.

    Raises:
        SelectorSyntaxError: If the selector is not valid CSS
    """
    return _compile_selector(selector.strip())


@lru_cache(maxsize=128)
def _compile_selector(selector: str) -> CSSSelector:
    return CSSSelector(selector, translator="html")


def _render(element, parts: List[str], preserve: bool = False) -> None:
    tag = element.tag if isinstance(element.tag, str) else None
    if tag is None:
        # comments and processing instructions
        return
    tag = tag.lower()
    if tag in _SKIPPED_TAGS:
        return
    if tag == 'br':
        parts.append('\n')
        return

    is_block = tag in _BLOCK_TAGS
    preserve = preserve or tag == 'pre'
    if is_block:
        parts.append('\n')
    if element.text:
        parts.append(element.text if preserve else _WHITESPACE.sub(' ', element.text))
    for child in element:
        _render(child, parts, preserve)
        if child.tail:
            parts.append(child.tail if preserve else _WHITESPACE.sub(' ', child.tail))
    if is_block:
        parts.append('\n')


class LxmlNode:
    """MarkupNode backed by an lxml element."""

    def __init__(self, element: html.HtmlElement):
        self.element = element

    def text(self) -> str:
        parts: List[str] = []
        _render(self.element, parts)
        return ''.join(parts)

    def raw_text(self) -> str:
        return self.element.text_content()

    def get(self, attribute: str) -> Optional[str]:
        return self.element.get(attribute)

    def __repr__(self) -> str:
        return f"LxmlNode(<{self.element.tag}>)"


class LxmlDocument:
    """MarkupDocument backed by lxml.html."""

    def __init__(self, root: html.HtmlElement):
        self.root = root

    def title(self) -> Optional[str]:
        found = self.root.xpath('//title')
        if not found:
            return None
        return found[0].text_content()

    def select_first(self, selector: str) -> Optional[LxmlNode]:
        found = compile_selector(selector)(self.root)
        return LxmlNode(found[0]) if found else None

    def anchors(self) -> List[LxmlNode]:
        return [LxmlNode(a) for a in self.root.xpath('//a')]

    def body(self) -> LxmlNode:
        found = self.root.xpath('//body')
        return LxmlNode(found[0] if found else self.root)


def parse_markup(markup: str) -> LxmlDocument:
    """
    Parse arbitrary (often broken) HTML into a queryable document.

    Args:
        markup: Decoded page markup

    Returns:
        LxmlDocument; an empty document for blank input
    """
    # lxml refuses str input that still carries an encoding declaration
    cleaned = _XML_DECLARATION.sub('', markup or '')
    if not cleaned.strip():
        cleaned = '<html><body></body></html>'
    try:
        root = html.document_fromstring(cleaned)
    except (etree.ParserError, ValueError):
        root = html.document_fromstring('<html><body></body></html>')
    return LxmlDocument(root)
