"""Unique, human-stable CSS selectors for snapshot nodes."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from .dom import Element


def css_escape(value: str) -> str:
    """Serialize an identifier the way `CSS.escape` does in browsers."""
    text = str(value)
    out: List[str] = []
    length = len(text)
    first = text[0] if text else ""
    for index, char in enumerate(text):
        code = ord(char)
        if code == 0:
            out.append("\ufffd")
        elif (
            0x1 <= code <= 0x1F
            or code == 0x7F
            or (index == 0 and char.isdigit() and char.isascii())
            or (index == 1 and char.isdigit() and char.isascii() and first == "-")
        ):
            out.append(f"\\{code:x} ")
        elif index == 0 and char == "-" and length == 1:
            out.append("\\-")
        elif code >= 0x80 or char in "-_" or (char.isascii() and char.isalnum()):
            out.append(char)
        else:
            out.append("\\" + char)
    return "".join(out)


def class_tokens(element: Element) -> List[str]:
    raw = element.class_name
    if not isinstance(raw, str):
        return []
    return sorted(set(raw.split()))


@dataclass
class SelectorCaches:
    """Frequency maps built by one document walk, scoped to one snapshot."""

    document_element: Optional[Element] = None
    id_counts: Counter = field(default_factory=Counter)
    test_id_counts: Counter = field(default_factory=Counter)
    data_test_counts: Counter = field(default_factory=Counter)
    class_key_counts: Counter = field(default_factory=Counter)
    class_token_counts: Counter = field(default_factory=Counter)

    @classmethod
    def build(cls, document_element: Element) -> "SelectorCaches":
        caches = cls(document_element=document_element)
        stack: List[Element] = [document_element]
        while stack:
            element = stack.pop()
            caches.record(element)
            stack.extend(reversed(element.children))
        return caches

    def record(self, element: Element) -> None:
        element_id = element.id
        if element_id:
            self.id_counts[element_id] += 1
        test_id = element.get_attribute("data-testid")
        if test_id:
            self.test_id_counts[test_id] += 1
        data_test = element.get_attribute("data-test")
        if data_test:
            self.data_test_counts[data_test] += 1
        classes = class_tokens(element)
        if classes:
            self.class_key_counts[".".join(classes)] += 1
            self.class_token_counts.update(classes)

    def has_unique_id(self, element: Element) -> bool:
        element_id = element.id
        return bool(element_id) and self.id_counts.get(element_id) == 1

    def has_unique_classes(self, classes: List[str]) -> bool:
        if not classes:
            return False
        if self.class_key_counts.get(".".join(classes)) != 1:
            return False
        # a compound class selector also matches elements carrying a superset
        return min(self.class_token_counts.get(token, 0) for token in classes) == 1


def _path_segment(element: Element, caches: SelectorCaches) -> tuple[str, bool]:
    segment = element.tag_name.lower()
    if caches.has_unique_id(element):
        return f"{segment}#{css_escape(element.id)}", True

    parent = element.parent
    if parent is not None:
        siblings = parent.children
        same_tag = 0
        position = 0
        for index, sibling in enumerate(siblings, start=1):
            if sibling.tag_name == element.tag_name:
                same_tag += 1
            if sibling is element:
                position = index
        if same_tag > 1 and position:
            segment += f":nth-child({position})"
    return segment, False


def get_unique_selector(element: Element, caches: SelectorCaches) -> str:
    if caches.has_unique_id(element):
        return "#" + css_escape(element.id)

    test_id = element.get_attribute("data-testid")
    if test_id and caches.test_id_counts.get(test_id) == 1:
        return f'[data-testid="{css_escape(test_id)}"]'

    data_test = element.get_attribute("data-test")
    if data_test and caches.data_test_counts.get(data_test) == 1:
        return f'[data-test="{css_escape(data_test)}"]'

    classes = class_tokens(element)
    if caches.has_unique_classes(classes):
        return "." + ".".join(css_escape(token) for token in classes)

    path: List[str] = []
    current: Optional[Element] = element
    while current is not None and current is not caches.document_element:
        segment, anchored = _path_segment(current, caches)
        path.append(segment)
        if anchored:
            break
        current = current.parent
    if not path:
        return element.tag_name.lower()
    return " > ".join(reversed(path))


def get_simple_selector(element: Element, document_element: Optional[Element]) -> str:
    """Positional path used by reduced-feature snapshots; no caches needed."""
    path: List[str] = []
    current: Optional[Element] = element
    while current is not None and current is not document_element:
        segment = current.tag_name.lower()
        parent = current.parent
        if parent is not None:
            for index, sibling in enumerate(parent.children, start=1):
                if sibling is current:
                    segment += f":nth-child({index})"
                    break
        path.append(segment)
        current = parent
    if not path:
        return element.tag_name.lower()
    return " > ".join(reversed(path))
