from __future__ import annotations

from typing import Any, Dict, Optional

from .dom import Document, Element

EDITABLE_TAGS = frozenset({"input", "textarea", "select"})
PASSWORD_MASK = "***"


def mask_value(element: Element, value: str) -> str:
    if element.input_type == "password":
        return PASSWORD_MASK if value else ""
    return value


def get_element_state(element: Element, document: Document) -> Dict[str, Any]:
    """Interaction/form state; keys are only set when they apply to the element."""
    state: Dict[str, Any] = {}

    if element.is_content_editable or element.tag_name.lower() in EDITABLE_TAGS:
        state["editable"] = True

    disabled: Optional[bool] = element.disabled
    if disabled is not None:
        state["disabled"] = bool(disabled)

    value = element.value
    if isinstance(value, str):
        state["value"] = mask_value(element, value)

    checked = element.checked
    if checked is not None:
        state["checked"] = bool(checked)

    selected = element.selected
    if selected is not None:
        state["selected"] = bool(selected)

    expanded = element.get_attribute("aria-expanded")
    if expanded is not None:
        state["expanded"] = expanded.strip().lower() == "true"

    style = element.computed_style()
    if style.display == "none" or style.visibility == "hidden":
        state["hidden"] = True

    state["focused"] = document.active_element is element
    return state
