from tabscope.snapshot.dom import Viewport
from tabscope.snapshot.html_document import load_html


def test_fragment_gets_html_and_body():
    document = load_html("<p>hello</p><button>Go</button>")
    assert document.document_element.tag_name == "html"
    body = document.body
    assert body is not None
    assert [child.tag_name for child in body.children] == ["p", "button"]
    assert body.children[0].parent is body


def test_head_stays_outside_body():
    document = load_html("<html><head><title> My  Page </title></head><p>x</p></html>")
    assert [child.tag_name for child in document.document_element.children] == ["head", "body"]
    assert document.title == "My Page"


def test_inline_style_and_geometry():
    document = load_html(
        '<div id="box" style="left: 10px; top:5.5px; width:200px; height:40px; opacity:0.5; '
        'visibility:hidden !important"></div>'
    )
    box = document.get_element_by_id("box")
    rect = box.bounding_rect()
    assert (rect.left, rect.top, rect.width, rect.height) == (10.0, 5.5, 200.0, 40.0)
    style = box.computed_style()
    assert style.opacity == "0.5"
    assert style.visibility == "hidden"


def test_hidden_attribute_means_display_none():
    document = load_html('<div id="h" hidden></div>')
    assert document.get_element_by_id("h").computed_style().display == "none"


def test_autofocus_and_url():
    document = load_html(
        '<input id="a"><input id="b" autofocus>',
        url="file:///tmp/page.html",
        viewport=Viewport(width=800, height=600),
    )
    assert document.active_element is document.get_element_by_id("b")
    assert document.url == "file:///tmp/page.html"
    assert document.viewport.height == 600


def test_body_is_active_without_autofocus():
    document = load_html("<main><input id=\"a\"></main>")
    assert document.active_element is document.body


def test_comments_and_doctype_are_ignored():
    document = load_html("<!DOCTYPE html><!-- note --><body><p>text</p></body>")
    assert "note" not in document.body.text_content
    assert document.body.text_content == "text"
