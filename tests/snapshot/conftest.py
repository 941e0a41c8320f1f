import pytest

from tabscope.snapshot.context import SnapshotContext
from tabscope.snapshot.html_document import load_html

BOX = "width:100px;height:20px"

PAGE_TEMPLATE = (
    "<!DOCTYPE html><html><head><title>Fixture Page</title></head>"
    "<body style=\"width:1280px;height:720px\">{body}</body></html>"
)


@pytest.fixture
def make_page():
    def _make(body, **kwargs):
        kwargs.setdefault("url", "https://example.test/page")
        return load_html(PAGE_TEMPLATE.format(body=body), **kwargs)

    return _make


@pytest.fixture
def make_context(make_page):
    def _make(body):
        document = make_page(body)
        return document, SnapshotContext.build(document)

    return _make
