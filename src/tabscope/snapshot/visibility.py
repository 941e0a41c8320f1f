from __future__ import annotations

from .dom import BoundingRect, Element, Viewport


def _opacity_is_zero(raw: str) -> bool:
    try:
        return float(raw) == 0
    except (TypeError, ValueError):
        return False


def intersects_viewport(rect: BoundingRect, viewport: Viewport) -> bool:
    return (
        rect.top < viewport.height
        and rect.bottom > 0
        and rect.left < viewport.width
        and rect.right > 0
    )


def is_element_visible(element: Element, viewport: Viewport) -> bool:
    """Laid out, not hidden by CSS, non-empty and inside the viewport."""
    if element is None or element.offset_parent is None:
        return False

    style = element.computed_style()
    if style.display == "none" or style.visibility == "hidden" or _opacity_is_zero(style.opacity):
        return False

    rect = element.bounding_rect()
    return rect.width > 0 and rect.height > 0 and intersects_viewport(rect, viewport)
