"""Per-invocation lookup state shared by the resolvers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .dom import Document, Element
from .selector_resolver import SelectorCaches


@dataclass
class SnapshotContext:
    """
    Built once at the start of a snapshot and discarded afterwards.

    Holds the selector frequency maps plus id and `label[for]` indexes so that
    every resolver call is O(1) in the size of the document.
    """

    document: Document
    selectors: SelectorCaches
    elements_by_id: Dict[str, Element] = field(default_factory=dict)
    labels_by_target: Dict[str, Element] = field(default_factory=dict)
    element_count: int = 0

    @classmethod
    def build(cls, document: Document) -> "SnapshotContext":
        root = document.document_element
        context = cls(document=document, selectors=SelectorCaches(document_element=root))
        stack: List[Element] = [root]
        while stack:
            element = stack.pop()
            context._record(element)
            stack.extend(reversed(element.children))
        return context

    def _record(self, element: Element) -> None:
        self.element_count += 1
        self.selectors.record(element)
        element_id = element.id
        if element_id and element_id not in self.elements_by_id:
            self.elements_by_id[element_id] = element
        if element.tag_name.lower() == "label":
            target = element.get_attribute("for")
            if target and target not in self.labels_by_target:
                self.labels_by_target[target] = element

    def get_element_by_id(self, element_id: str) -> Optional[Element]:
        return self.elements_by_id.get(element_id)

    def label_for(self, element_id: str) -> Optional[Element]:
        return self.labels_by_target.get(element_id)
