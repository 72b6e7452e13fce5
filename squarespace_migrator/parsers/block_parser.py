"""
Conversion of Squarespace post HTML to WordPress block markup.

The conversion is an ordered sequence of named stages.  Every stage is a
plain ``str -> str`` function that can be called on its own; the order of
:data:`STAGES` matters because later stages expect the markup produced by
earlier ones (list items are unwrapped only after paragraphs were wrapped,
single-paragraph quotes are collapsed only after their paragraph was
wrapped, ...).

The structural stages parse their input with BeautifulSoup and insert the
block markers as comment nodes next to the matched elements, so markers
always come in pairs around a complete element, whatever unmatched tags
the export contains.  Each of those stages leaves alone elements that
already sit right after their own marker, which keeps a second pass from
wrapping them again.  Only the inline and whitespace stages work on the
serialized text.
"""

from __future__ import annotations

import re
from functools import partial
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .block_schema import closer_body, is_block_document, is_closer, is_opener, opener_body

Stage = Tuple[str, Callable[[str], str]]

DEFAULT_CONTAINER_CLASS = "sqs-html-content"
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
QUOTE_PARAGRAPH_CLASS = "blockquotes"


###############################################################################
# Tree helpers
###############################################################################

def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _is_blank(node) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, Comment) and not node.strip()


def _previous_marker(tag: Tag) -> Optional[str]:
    for sibling in tag.previous_siblings:
        if isinstance(sibling, Comment):
            return str(sibling)
        if _is_blank(sibling):
            continue
        return None
    return None


def _already_wrapped(tag: Tag, *names: str) -> bool:
    body = _previous_marker(tag)
    return body is not None and any(is_opener(body, name) for name in names)


def _in_figure(tag: Tag, figure_class: str) -> bool:
    parent = tag.parent
    return parent is not None and parent.name == "figure" and figure_class in (parent.get("class") or [])


def wrap_tag(tag: Tag, name: str, attrs: Optional[Dict[str, Any]] = None, *, tight: bool = False) -> None:
    """
    Put block markers for ``name`` around ``tag``.  Regular blocks sit on
    their own lines; ``tight`` blocks get no surrounding newlines.
    """
    if tight:
        tag.insert_before(Comment(opener_body(name, attrs)))
        tag.insert_after(Comment(closer_body(name)))
        return
    for node in (NavigableString("\n"), Comment(opener_body(name, attrs)), NavigableString("\n")):
        tag.insert_before(node)
    for node in (NavigableString("\n"), Comment(closer_body(name)), NavigableString("\n")):
        tag.insert_after(node)
        tag = node


def _sole_paragraph(tag: Tag) -> Optional[Tag]:
    """The wrapped ``<p>`` that is the only content of ``tag``, if any."""
    nodes = [node for node in tag.contents if not _is_blank(node)]
    if len(nodes) != 3:
        return None
    opener, paragraph, closer = nodes
    if not (isinstance(opener, Comment) and is_opener(str(opener), "paragraph")):
        return None
    if not (isinstance(closer, Comment) and is_closer(str(closer), "paragraph")):
        return None
    if not isinstance(paragraph, Tag) or paragraph.name != "p":
        return None
    return paragraph


def _keep_only(tag: Tag, child: Tag) -> None:
    for node in list(tag.contents):
        if node is not child:
            node.extract()


###############################################################################
# Stages
###############################################################################

def wrap_paragraphs(html: str) -> str:
    soup = _soup(html)
    for p in soup.find_all("p"):
        if _already_wrapped(p, "paragraph"):
            continue
        p.attrs = {}
        wrap_tag(p, "paragraph")
    return soup.decode()


def wrap_headings(html: str) -> str:
    soup = _soup(html)
    for heading in soup.find_all(HEADING_TAGS):
        if _already_wrapped(heading, "heading"):
            continue
        heading.attrs = {}
        wrap_tag(heading, "heading", {"level": int(heading.name[1])})
    return soup.decode()


def wrap_images(html: str) -> str:
    soup = _soup(html)
    for img in soup.find_all("img"):
        if _in_figure(img, "wp-block-image"):
            continue
        figure = img.wrap(soup.new_tag("figure", attrs={"class": "wp-block-image"}))
        wrap_tag(figure, "image")
    return soup.decode()


def wrap_lists(html: str) -> str:
    soup = _soup(html)
    for lst in soup.find_all(["ul", "ol"]):
        if _already_wrapped(lst, "list"):
            continue
        lst.attrs = {}
        wrap_tag(lst, "list", {"ordered": True} if lst.name == "ol" else None)
    # list items hold inline content, not a nested paragraph block
    for item in soup.find_all("li"):
        paragraph = _sole_paragraph(item)
        if paragraph is not None:
            _keep_only(item, paragraph)
            paragraph.unwrap()
    return soup.decode()


def wrap_quotes(html: str) -> str:
    soup = _soup(html)
    for quote in soup.find_all("blockquote"):
        if _already_wrapped(quote, "quote"):
            continue
        paragraph = _sole_paragraph(quote)
        if paragraph is None:
            quote.attrs = {}
            wrap_tag(quote, "quote")
            continue
        _keep_only(quote, paragraph)
        quote.unwrap()
        paragraph.attrs = {"class": QUOTE_PARAGRAPH_CLASS}
        wrap_tag(paragraph, "paragraph", {"className": QUOTE_PARAGRAPH_CLASS})
    return soup.decode()


def _pre_block_name(pre: Tag) -> str:
    nodes = [node for node in pre.contents if not _is_blank(node)]
    if len(nodes) == 1 and isinstance(nodes[0], Tag) and nodes[0].name == "code":
        return "code"
    return "preformatted"


def wrap_code(html: str) -> str:
    soup = _soup(html)
    for pre in soup.find_all("pre"):
        if _already_wrapped(pre, "code", "preformatted"):
            continue
        pre.attrs = {}
        wrap_tag(pre, _pre_block_name(pre))
    return soup.decode()


def wrap_tables(html: str) -> str:
    soup = _soup(html)
    for table in soup.find_all("table"):
        if table.find_parent("table") is not None or _in_figure(table, "wp-block-table"):
            continue
        for section in table.find_all(["thead", "tbody"]):
            section.attrs = {}
        while table.contents and _is_blank(table.contents[0]):
            table.contents[0].extract()
        while table.contents and _is_blank(table.contents[-1]):
            table.contents[-1].extract()
        figure = table.wrap(soup.new_tag("figure", attrs={"class": "wp-block-table"}))
        wrap_tag(figure, "table", tight=True)
    return soup.decode()


def strip_containers(html: str, container_class: str = DEFAULT_CONTAINER_CLASS) -> str:
    """
    Remove the rich-text container ``<div>`` wrappers Squarespace nests
    around content, keeping their children.  Other divs are kept; stray
    closing tags disappear when the markup is parsed.
    """
    soup = _soup(html)
    for div in soup.find_all("div", class_=container_class):
        div.unwrap()
    return soup.decode()


def wrap_embeds(html: str) -> str:
    soup = _soup(html)
    for iframe in soup.find_all("iframe"):
        if iframe.find_parent("iframe") is not None or _already_wrapped(iframe, "html"):
            continue
        wrap_tag(iframe, "html")
    return soup.decode()


_INLINE_RENAMES = {"b": "strong", "i": "em"}
_SELF_CLOSING_RE = re.compile(r"<(br|hr)\b([^>]*?)\s*/?>", re.IGNORECASE)


def normalize_inline(html: str) -> str:
    soup = _soup(html)
    for tag in soup.find_all(list(_INLINE_RENAMES)):
        tag.name = _INLINE_RENAMES[tag.name]
    return _SELF_CLOSING_RE.sub(r"<\1\2 />", soup.decode())


_EMPTY_PARAGRAPH_RE = re.compile(r"<!-- wp:paragraph -->\s*<p>\s*</p>\s*<!-- /wp:paragraph -->")


def cleanup_whitespace(html: str) -> str:
    html = _EMPTY_PARAGRAPH_RE.sub("", html)
    html = re.sub(r"\n{3,}", "\n\n", html)
    html = re.sub(r"\s{3,}", " ", html)
    return html.strip()


def build_stages(container_class: str = DEFAULT_CONTAINER_CLASS) -> Tuple[Stage, ...]:
    return (
        ("paragraphs", wrap_paragraphs),
        ("headings", wrap_headings),
        ("images", wrap_images),
        ("lists", wrap_lists),
        ("quotes", wrap_quotes),
        ("code", wrap_code),
        ("tables", wrap_tables),
        ("containers", partial(strip_containers, container_class=container_class)),
        ("embeds", wrap_embeds),
        ("inline", normalize_inline),
        ("whitespace", cleanup_whitespace),
    )


STAGES: Tuple[Stage, ...] = build_stages()


def convert_html_to_blocks(
    html: str,
    *,
    container_class: str = DEFAULT_CONTAINER_CLASS,
    stages: Optional[Sequence[Stage]] = None,
) -> str:
    """
    Convert exported post HTML into block markup.

    Input that already starts with a block marker is returned unchanged.
    """
    if not html or not html.strip():
        return ""
    if is_block_document(html):
        return html
    for _name, stage in stages or build_stages(container_class):
        html = stage(html)
    return html
