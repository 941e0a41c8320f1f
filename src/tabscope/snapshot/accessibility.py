"""Role and accessible-name computation for snapshot nodes."""

from __future__ import annotations

from typing import Optional, Tuple

from .context import SnapshotContext
from .dom import Element

NAME_MAX_LENGTH = 50
NAME_TRUNCATED_LENGTH = 47
ELLIPSIS = "..."

TAG_ROLES = {
    "button": "button",
    "textarea": "textbox",
    "select": "combobox",
    "img": "img",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "nav": "navigation",
    "main": "main",
    "article": "article",
    "section": "region",
    "aside": "complementary",
    "header": "banner",
    "footer": "contentinfo",
    "form": "form",
    "table": "table",
    "td": "cell",
    "th": "columnheader",
    "tr": "row",
    "ul": "list",
    "ol": "list",
    "li": "listitem",
    "dl": "list",
    "dt": "term",
    "dd": "definition",
}

INPUT_ROLES = {
    "checkbox": "checkbox",
    "radio": "radio",
    "range": "slider",
    "search": "searchbox",
    "number": "spinbutton",
    "file": "button",
    "submit": "button",
    "button": "button",
    "reset": "button",
    "image": "button",
}


def _collapse(text: Optional[str]) -> str:
    return " ".join((text or "").split())


def compute_role(element: Element) -> str:
    explicit = (element.get_attribute("role") or "").strip()
    if explicit:
        return explicit
    tag = element.tag_name.lower()
    if tag == "input":
        return INPUT_ROLES.get(element.input_type or "text", "textbox")
    if tag == "a":
        return "link" if element.has_attribute("href") else "generic"
    return TAG_ROLES.get(tag, "generic")


def _labelledby_text(element: Element, context: SnapshotContext) -> str:
    raw = element.get_attribute("aria-labelledby") or ""
    parts = []
    for token in raw.split():
        target = context.get_element_by_id(token)
        if target is not None:
            text = _collapse(target.text_content)
            if text:
                parts.append(text)
    return " ".join(parts)


def _enclosing_label(element: Element) -> Optional[Element]:
    node = element.parent
    while node is not None:
        if node.tag_name.lower() == "label":
            return node
        node = node.parent
    return None


def truncate_name(text: str) -> str:
    if len(text) > NAME_MAX_LENGTH:
        return text[:NAME_TRUNCATED_LENGTH] + ELLIPSIS
    return text


def compute_name(element: Element, context: SnapshotContext) -> str:
    """First non-empty source wins; falls back to the lowercase tag name."""
    aria_label = (element.get_attribute("aria-label") or "").strip()
    if aria_label:
        return aria_label

    labelled_by = _labelledby_text(element, context)
    if labelled_by:
        return labelled_by

    element_id = element.id
    if element_id:
        label = context.label_for(element_id)
        if label is not None:
            text = _collapse(label.text_content)
            if text:
                return text

    parent_label = _enclosing_label(element)
    if parent_label is not None:
        text = _collapse(parent_label.text_content)
        if text:
            return text

    for attribute in ("title", "placeholder", "alt"):
        text = (element.get_attribute(attribute) or "").strip()
        if text:
            return text

    if element.input_type != "password":
        value = element.value
        if isinstance(value, str) and value.strip():
            return value.strip()

    text = truncate_name(_collapse(element.text_content))
    return text or element.tag_name.lower()


def get_accessibility_info(element: Element, context: SnapshotContext) -> Tuple[str, str]:
    return compute_role(element), compute_name(element, context)
