from tabscope.snapshot.element_state import PASSWORD_MASK, get_element_state


def _state(document, tag, index=0):
    return get_element_state(document.query_tag(tag)[index], document)


def test_password_value_is_masked(make_page):
    document = make_page('<input type="password" value="secret"><input type="password">')
    assert _state(document, "input", 0)["value"] == PASSWORD_MASK == "***"
    assert _state(document, "input", 1)["value"] == ""


def test_plain_element_only_reports_focus(make_page):
    document = make_page("<div>hello</div>")
    assert _state(document, "div") == {"focused": False}


def test_checkbox_state(make_page):
    document = make_page('<input type="checkbox" checked>')
    state = _state(document, "input")
    assert state["checked"] is True
    assert state["editable"] is True
    assert state["disabled"] is False
    assert state["value"] == "on"


def test_text_input_value_is_reported(make_page):
    document = make_page('<input value="hello">')
    assert _state(document, "input")["value"] == "hello"


def test_option_selected(make_page):
    document = make_page('<select><option>a</option><option selected>b</option></select>')
    assert _state(document, "option", 0)["selected"] is False
    assert _state(document, "option", 1)["selected"] is True
    assert _state(document, "select")["value"] == "b"


def test_disabled_button(make_page):
    document = make_page("<button disabled>Save</button>")
    assert _state(document, "button")["disabled"] is True


def test_aria_expanded(make_page):
    document = make_page(
        '<button aria-expanded="true">Open</button><button aria-expanded="false">Closed</button>'
    )
    assert _state(document, "button", 0)["expanded"] is True
    assert _state(document, "button", 1)["expanded"] is False


def test_content_editable_is_editable(make_page):
    document = make_page('<div contenteditable="true"><p>text</p></div>')
    assert _state(document, "div")["editable"] is True
    assert _state(document, "p")["editable"] is True


def test_hidden_flag(make_page):
    document = make_page(
        '<button style="display:none">a</button><button style="visibility:hidden">b</button>'
    )
    assert _state(document, "button", 0)["hidden"] is True
    assert _state(document, "button", 1)["hidden"] is True


def test_focused_follows_active_element(make_page):
    document = make_page('<input id="q" autofocus><input id="other">')
    assert _state(document, "input", 0)["focused"] is True
    assert _state(document, "input", 1)["focused"] is False
