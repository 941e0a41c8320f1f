"""
DOM capability interface used by the in-process snapshot engine.

This module provides:
- `Element` / `Document` protocols: the slice of a DOM binding the engine reads.
- `DomElement` / `DomDocument`: an in-memory implementation with DOM-like
  property semantics (see `html_document.load_html` for building one).

Native properties return `None` when the property is not defined for the
element (e.g. `checked` on a `<div>`), mirroring `undefined` in a browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Union

FORM_VALUE_TAGS = frozenset({"input", "textarea", "select", "button", "option"})
DISABLEABLE_TAGS = frozenset({"button", "input", "select", "textarea", "option", "optgroup", "fieldset"})
INPUT_TYPES = frozenset(
    {
        "button", "checkbox", "color", "date", "datetime-local", "email", "file",
        "hidden", "image", "month", "number", "password", "radio", "range",
        "reset", "search", "submit", "tel", "text", "time", "url", "week",
    }
)


@dataclass(frozen=True)
class BoundingRect:
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class ComputedStyle:
    display: str = "inline"
    visibility: str = "visible"
    opacity: str = "1"
    position: str = "static"


@dataclass(frozen=True)
class Viewport:
    width: int = 1280
    height: int = 720


class Element(Protocol):
    @property
    def tag_name(self) -> str: ...

    @property
    def parent(self) -> Optional["Element"]: ...

    @property
    def children(self) -> Sequence["Element"]: ...

    @property
    def text_content(self) -> str: ...

    @property
    def offset_parent(self) -> Optional["Element"]: ...

    @property
    def id(self) -> str: ...

    @property
    def class_name(self) -> str: ...

    @property
    def value(self) -> Optional[str]: ...

    @property
    def checked(self) -> Optional[bool]: ...

    @property
    def selected(self) -> Optional[bool]: ...

    @property
    def disabled(self) -> Optional[bool]: ...

    @property
    def input_type(self) -> Optional[str]: ...

    @property
    def is_content_editable(self) -> bool: ...

    def get_attribute(self, name: str) -> Optional[str]: ...

    def has_attribute(self, name: str) -> bool: ...

    def bounding_rect(self) -> BoundingRect: ...

    def computed_style(self) -> ComputedStyle: ...


class Document(Protocol):
    @property
    def document_element(self) -> Element: ...

    @property
    def body(self) -> Optional[Element]: ...

    @property
    def active_element(self) -> Optional[Element]: ...

    @property
    def viewport(self) -> Viewport: ...

    @property
    def url(self) -> str: ...

    @property
    def title(self) -> str: ...


@dataclass(eq=False)
class DomElement:
    """In-memory element. Identity semantics: two elements are never equal."""

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    child_nodes: List[Union["DomElement", str]] = field(default_factory=list)
    rect: BoundingRect = field(default_factory=BoundingRect)
    style: Dict[str, str] = field(default_factory=dict)
    properties: Dict[str, object] = field(default_factory=dict)
    parent: Optional["DomElement"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()
        for child in self.child_nodes:
            if isinstance(child, DomElement):
                child.parent = self

    def append(self, child: Union["DomElement", str]) -> Union["DomElement", str]:
        if isinstance(child, DomElement):
            child.parent = self
        self.child_nodes.append(child)
        return child

    @property
    def tag_name(self) -> str:
        return self.tag

    @property
    def children(self) -> List["DomElement"]:
        return [node for node in self.child_nodes if isinstance(node, DomElement)]

    @property
    def text_content(self) -> str:
        parts: List[str] = []
        stack: List[Union[DomElement, str]] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, str):
                parts.append(node)
                continue
            stack.extend(reversed(node.child_nodes))
        return "".join(parts)

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name.lower())

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    @property
    def id(self) -> str:
        return self.attributes.get("id", "")

    @property
    def class_name(self) -> str:
        return self.attributes.get("class", "")

    @property
    def input_type(self) -> Optional[str]:
        if self.tag != "input":
            return None
        raw = (self.attributes.get("type") or "").strip().lower()
        return raw if raw in INPUT_TYPES else "text"

    @property
    def value(self) -> Optional[str]:
        if "value" in self.properties:
            return str(self.properties["value"])
        if self.tag not in FORM_VALUE_TAGS:
            return None
        if self.tag == "textarea":
            return self.text_content
        if self.tag == "option":
            attr = self.attributes.get("value")
            return attr if attr is not None else " ".join(self.text_content.split())
        if self.tag == "select":
            options = [node for node in self.iter_descendants() if node.tag == "option"]
            for option in options:
                if option.selected:
                    return option.value or ""
            return (options[0].value or "") if options else ""
        if self.tag == "input" and self.input_type in ("checkbox", "radio"):
            return self.attributes.get("value", "on")
        return self.attributes.get("value", "")

    @property
    def checked(self) -> Optional[bool]:
        if self.tag != "input":
            return None
        if "checked" in self.properties:
            return bool(self.properties["checked"])
        return "checked" in self.attributes

    @property
    def selected(self) -> Optional[bool]:
        if self.tag != "option":
            return None
        if "selected" in self.properties:
            return bool(self.properties["selected"])
        return "selected" in self.attributes

    @property
    def disabled(self) -> Optional[bool]:
        if self.tag not in DISABLEABLE_TAGS:
            return None
        if "disabled" in self.properties:
            return bool(self.properties["disabled"])
        return "disabled" in self.attributes

    @property
    def is_content_editable(self) -> bool:
        node: Optional[DomElement] = self
        while node is not None:
            flag = node.attributes.get("contenteditable")
            if flag is not None:
                return flag.strip().lower() in ("", "true", "plaintext-only")
            node = node.parent
        return False

    def bounding_rect(self) -> BoundingRect:
        return self.rect

    def computed_style(self) -> ComputedStyle:
        visibility = self.style.get("visibility")
        node = self.parent
        while visibility in (None, "inherit") and node is not None:
            visibility = node.style.get("visibility")
            node = node.parent
        return ComputedStyle(
            display=self.style.get("display", "block" if self.parent is None else "inline"),
            visibility=visibility if visibility not in (None, "inherit") else "visible",
            opacity=self.style.get("opacity", "1"),
            position=self.style.get("position", "static"),
        )

    @property
    def offset_parent(self) -> Optional["DomElement"]:
        if self.tag in ("html", "body"):
            return None
        if self.style.get("position") == "fixed":
            return None
        node: Optional[DomElement] = self
        while node is not None:
            if node.style.get("display") == "none":
                return None
            node = node.parent
        ancestor = self.parent
        while ancestor is not None:
            if ancestor.tag == "body" or ancestor.style.get("position", "static") != "static":
                return ancestor
            ancestor = ancestor.parent
        return None

    def iter_descendants(self) -> Iterator["DomElement"]:
        """Pre-order over descendants (excluding self)."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(eq=False)
class DomDocument:
    document_element: DomElement
    url: str = ""
    viewport: Viewport = field(default_factory=Viewport)
    active_element: Optional[DomElement] = None

    @property
    def body(self) -> Optional[DomElement]:
        for child in self.document_element.children:
            if child.tag == "body":
                return child
        return None

    @property
    def title(self) -> str:
        for node in self.document_element.iter_descendants():
            if node.tag == "title":
                return " ".join(node.text_content.split())
        return ""

    def get_element_by_id(self, element_id: str) -> Optional[DomElement]:
        for node in self.document_element.iter_descendants():
            if node.id == element_id:
                return node
        return None

    def query_tag(self, tag: str) -> List[DomElement]:
        tag = tag.lower()
        return [node for node in self.document_element.iter_descendants() if node.tag == tag]
