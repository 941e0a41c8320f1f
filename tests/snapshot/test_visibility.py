import pytest

from tabscope.snapshot.dom import BoundingRect, Viewport
from tabscope.snapshot.visibility import intersects_viewport, is_element_visible

BOX = "width:100px;height:20px"


def _visible(document, element_id):
    return is_element_visible(document.get_element_by_id(element_id), document.viewport)


def test_sized_element_is_visible(make_page):
    document = make_page(f'<button id="b" style="{BOX}">Go</button>')
    assert _visible(document, "b")


@pytest.mark.parametrize(
    "style",
    [
        "width:0px;height:20px",
        f"{BOX};display:none",
        f"{BOX};visibility:hidden",
        f"{BOX};opacity:0",
        f"{BOX};position:fixed",
        f"{BOX};left:2000px",
        f"{BOX};top:-50px",
        f"{BOX};top:720px",
    ],
)
def test_hidden_variants(make_page, style):
    document = make_page(f'<button id="b" style="{style}">Go</button>')
    assert not _visible(document, "b")


def test_hidden_attribute(make_page):
    document = make_page(f'<button id="b" hidden style="{BOX}">Go</button>')
    assert not _visible(document, "b")


def test_display_none_ancestor_hides_descendants(make_page):
    document = make_page(f'<div style="display:none"><button id="b" style="{BOX}">Go</button></div>')
    assert not _visible(document, "b")


def test_visibility_is_inherited(make_page):
    document = make_page(
        f'<div style="visibility:hidden"><button id="b" style="{BOX}">Go</button>'
        f'<button id="c" style="{BOX};visibility:visible">Go</button></div>'
    )
    assert not _visible(document, "b")
    assert _visible(document, "c")


def test_partially_on_screen_counts(make_page):
    document = make_page(f'<button id="b" style="{BOX};left:-50px;top:710px">Go</button>')
    assert _visible(document, "b")


def test_intersects_viewport():
    viewport = Viewport(width=100, height=100)
    assert intersects_viewport(BoundingRect(left=10, top=10, width=5, height=5), viewport)
    assert not intersects_viewport(BoundingRect(left=100, top=10, width=5, height=5), viewport)
    assert not intersects_viewport(BoundingRect(left=-5, top=10, width=5, height=5), viewport)


def test_none_is_not_visible():
    assert not is_element_visible(None, Viewport())
