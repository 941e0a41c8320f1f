import pytest

from tabscope.snapshot.selector_resolver import (
    SelectorCaches,
    css_escape,
    get_simple_selector,
    get_unique_selector,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("btn1", "btn1"),
        ("a b", "a\\ b"),
        ("a.b", "a\\.b"),
        ("foo:bar", "foo\\:bar"),
        ("1abc", "\\31 abc"),
        ("-", "\\-"),
        ("-1x", "-\\31 x"),
        ("_ok-9", "_ok-9"),
        ("café", "café"),
        ("\x00", "\ufffd"),
    ],
)
def test_css_escape(raw, expected):
    assert css_escape(raw) == expected


def test_unique_id_wins(make_context):
    document, context = make_context('<button id="btn1" class="primary" data-testid="go">Click</button>')
    button = document.get_element_by_id("btn1")
    assert get_unique_selector(button, context.selectors) == "#btn1"


def test_id_is_escaped(make_context):
    document, context = make_context('<div id="a.b"></div>')
    element = document.get_element_by_id("a.b")
    assert get_unique_selector(element, context.selectors) == "#" + css_escape("a.b")


def test_duplicate_ids_fall_through_to_classes(make_context):
    document, context = make_context(
        '<span id="dup" class="first"></span><span id="dup" class="second"></span>'
    )
    first, second = document.query_tag("span")
    assert get_unique_selector(first, context.selectors) == ".first"
    assert get_unique_selector(second, context.selectors) == ".second"


def test_duplicate_ids_fall_through_to_path(make_context):
    document, context = make_context('<span id="dup"></span><span id="dup"></span>')
    first, second = document.query_tag("span")
    assert get_unique_selector(first, context.selectors) == "body > span:nth-child(1)"
    assert get_unique_selector(second, context.selectors) == "body > span:nth-child(2)"


def test_test_id_attributes(make_context):
    document, context = make_context(
        '<button data-testid="save">Save</button>'
        '<button data-test="cancel">Cancel</button>'
        '<button data-test="cancel">Cancel again</button>'
    )
    save, cancel, _ = document.query_tag("button")
    assert get_unique_selector(save, context.selectors) == '[data-testid="save"]'
    # duplicated data-test falls back to the positional path
    assert get_unique_selector(cancel, context.selectors) == "body > button:nth-child(2)"


def test_classes_are_sorted(make_context):
    document, context = make_context('<div class="zeta alpha"></div>')
    (element,) = [node for node in document.query_tag("div")]
    assert get_unique_selector(element, context.selectors) == ".alpha.zeta"


def test_class_combination_shared_by_superset_is_not_used(make_context):
    document, context = make_context('<div class="a b"></div><div class="a b c"></div>')
    plain, superset = document.query_tag("div")
    assert get_unique_selector(plain, context.selectors) == "body > div:nth-child(1)"
    assert get_unique_selector(superset, context.selectors) == ".a.b.c"


def test_path_stops_at_unique_id_ancestor(make_context):
    document, context = make_context(
        '<div id="main"><ul><li>One</li><li>Two</li></ul></div>'
    )
    _, second = document.query_tag("li")
    assert get_unique_selector(second, context.selectors) == "div#main > ul > li:nth-child(2)"


def test_nth_child_counts_all_element_siblings(make_context):
    document, context = make_context("<div><span></span><p></p><p></p></div>")
    _, last = document.query_tag("p")
    assert get_unique_selector(last, context.selectors) == "body > div > p:nth-child(3)"


def test_single_tag_sibling_has_no_index(make_context):
    document, context = make_context("<div><span></span><p></p></div>")
    (paragraph,) = document.query_tag("p")
    assert get_unique_selector(paragraph, context.selectors) == "body > div > p"


def test_distinct_unique_ids_give_distinct_selectors(make_context):
    ids = [f"item-{index}" for index in range(25)]
    body = "".join(f'<a href="#" id="{value}">x</a>' for value in ids)
    document, context = make_context(body)
    selectors = {
        get_unique_selector(document.get_element_by_id(value), context.selectors) for value in ids
    }
    assert len(selectors) == len(ids)


def test_caches_count_each_key(make_page):
    document = make_page(
        '<p id="x" class="b a"></p><p id="x" class="a"></p><i data-testid="t"></i>'
    )
    caches = SelectorCaches.build(document.document_element)
    assert caches.id_counts["x"] == 2
    assert caches.class_key_counts["a.b"] == 1
    assert caches.class_token_counts["a"] == 2
    assert caches.test_id_counts["t"] == 1
    assert not caches.has_unique_classes(["a"])


def test_simple_selector_is_positional(make_page):
    document = make_page('<div id="wrap"><p>hi</p></div>')
    (paragraph,) = document.query_tag("p")
    selector = get_simple_selector(paragraph, document.document_element)
    assert selector == "body:nth-child(2) > div:nth-child(1) > p:nth-child(1)"
