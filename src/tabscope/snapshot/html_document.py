"""Build an in-memory `DomDocument` from static HTML markup."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .dom import BoundingRect, DomDocument, DomElement, Viewport

_STYLE_KEYS = ("display", "visibility", "opacity", "position")
_GEOMETRY_KEYS = ("left", "top", "width", "height")
_PX_RE = re.compile(r"^(-?\d+(?:\.\d+)?)(?:px)?$")


def _parse_inline_style(raw: str) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for chunk in (raw or "").split(";"):
        if ":" not in chunk:
            continue
        key, _, value = chunk.partition(":")
        clean_key = key.strip().lower()
        clean_value = value.replace("!important", "").strip().lower()
        if clean_key and clean_value:
            declarations[clean_key] = clean_value
    return declarations


def _px(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    match = _PX_RE.match(value.strip())
    if not match:
        return None
    return float(match.group(1))


def _element_from_tag(tag: Tag) -> DomElement:
    attributes = {str(key).lower(): str(value) for key, value in tag.attrs.items()}
    declarations = _parse_inline_style(attributes.get("style", ""))

    style = {key: declarations[key] for key in _STYLE_KEYS if key in declarations}
    if "hidden" in attributes and "display" not in style:
        style["display"] = "none"

    left, top, width, height = (_px(declarations.get(key)) for key in _GEOMETRY_KEYS)
    rect = BoundingRect(
        left=left or 0.0,
        top=top or 0.0,
        width=max(0.0, width or 0.0),
        height=max(0.0, height or 0.0),
    )
    return DomElement(tag=tag.name, attributes=attributes, rect=rect, style=style)


def _convert_children(source: Union[Tag, BeautifulSoup], target: DomElement) -> None:
    stack: List[Tuple[Union[Tag, BeautifulSoup], DomElement]] = [(source, target)]
    while stack:
        bs_node, dom_parent = stack.pop()
        for child in bs_node.children:
            if isinstance(child, Tag):
                if child.name == "html":
                    stack.append((child, dom_parent))
                    continue
                element = _element_from_tag(child)
                dom_parent.append(element)
                stack.append((child, element))
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                dom_parent.append(str(child))


def _ensure_body(html: DomElement) -> None:
    if any(child.tag == "body" for child in html.children):
        return
    body = DomElement(tag="body", parent=html)
    kept: List[Union[DomElement, str]] = []
    for node in html.child_nodes:
        if isinstance(node, DomElement) and node.tag == "head":
            kept.append(node)
        else:
            body.append(node)
    kept.append(body)
    html.child_nodes = kept


def load_html(
    markup: str,
    *,
    url: str = "",
    viewport: Optional[Viewport] = None,
) -> DomDocument:
    """
    Parse markup into a `DomDocument`.

    Inline styles supply display/visibility/opacity/position and, when given in
    px, the element geometry (left/top/width/height). The first element with
    `autofocus` becomes the active element; otherwise <body> is, as in a browser.
    """
    soup = BeautifulSoup(markup or "", "html.parser", multi_valued_attributes=None)
    root_tag = soup.find("html")
    html = _element_from_tag(root_tag) if root_tag is not None else DomElement(tag="html")
    _convert_children(root_tag if root_tag is not None else soup, html)
    _ensure_body(html)

    document = DomDocument(document_element=html, url=url, viewport=viewport or Viewport())
    for node in html.iter_descendants():
        if node.has_attribute("autofocus"):
            document.active_element = node
            break
    else:
        document.active_element = document.body
    return document
