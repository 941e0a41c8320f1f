"""
In-process snapshot traversal.

Two modes:
- outline: flat, document-ordered list of interactive elements.
- dom-lite: depth-bounded hierarchy from <body> keeping interactive elements
  and every ancestor that has an interactive descendant.

All walks use an explicit stack, so DOM depth never bounds Python recursion.
A reduced-feature variant (`capture_reduced`) skips selector caching and
accessibility/state extraction; the resilience ladder uses it as last resort.
"""

from __future__ import annotations

import logging
import math
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import psutil

from .accessibility import get_accessibility_info
from .context import SnapshotContext
from .dom import BoundingRect, Document, Element
from .element_state import get_element_state
from .errors import NodeProcessingError
from .logging_utils import _log_snapshot_event
from .models import SnapshotOptions
from .selector_resolver import get_simple_selector, get_unique_selector
from .visibility import is_element_visible

if sys.platform == "win32":
    resource = None
else:
    import resource

logger = logging.getLogger(__name__)

INTERACTIVE_TAGS = frozenset({"button", "input", "textarea", "select"})
INTERACTIVE_ROLES = frozenset(
    {
        "button", "link", "textbox", "combobox", "listbox", "menuitem",
        "menuitemcheckbox", "menuitemradio", "option", "radio", "checkbox",
        "slider", "spinbutton", "tab", "treeitem",
    }
)
INTERACTIVE_ATTRIBUTES = ("onclick", "onmousedown", "onmouseup", "onchange")

# wire key -> attribute name
OPTIONAL_ATTRIBUTES = (
    ("id", "id"),
    ("className", "class"),
    ("href", "href"),
    ("src", "src"),
    ("alt", "alt"),
    ("title", "title"),
    ("type", "type"),
    ("placeholder", "placeholder"),
    ("ariaLabel", "aria-label"),
    ("ariaRole", "role"),
)

ALGORITHMS_USED = [
    "Iterative pre-order walk with explicit stack",
    "Set lookups for interactive element checks",
    "Reverse pre-order sweep for interactive descendants",
    "Pre-computed selector caches",
]


@dataclass
class TraversalMetrics:
    node_count: int = 0
    traversal_ms: float = 0.0
    processing_ms: float = 0.0
    memory_peak_mb: float = 0.0

    def to_wire(self, algorithm: str) -> Dict[str, Any]:
        return {
            "algorithm": algorithm,
            "nodeCount": self.node_count,
            "traversalMs": round(self.traversal_ms, 3),
            "processingMs": round(self.processing_ms, 3),
            "memoryPeakMB": self.memory_peak_mb,
            "algorithmsUsed": list(ALGORITHMS_USED),
        }


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def _memory_peak_mb() -> float:
    """Peak resident set size of this process in MB, 0 when it cannot be read."""
    try:
        if resource is not None:
            peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
            # ru_maxrss is bytes on macOS and kilobytes elsewhere
            scale = 1 if sys.platform == "darwin" else 1024
            return round(peak * scale / 1024 / 1024, 2)
        info = psutil.Process().memory_info()
        return round(getattr(info, "peak_wset", info.rss) / 1024 / 1024, 2)
    except (psutil.Error, OSError) as exc:
        logger.debug("Could not measure memory peak: %s", exc)
        return 0.0


def _iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_rect(rect: BoundingRect) -> Dict[str, int]:
    return {
        "x": _js_round(rect.left),
        "y": _js_round(rect.top),
        "w": max(0, _js_round(rect.width)),
        "h": max(0, _js_round(rect.height)),
    }


def is_element_interactive(element: Element) -> bool:
    tag = element.tag_name.lower()
    if tag in INTERACTIVE_TAGS:
        return True
    if tag == "a":
        return element.has_attribute("href")

    role = element.get_attribute("role")
    if role and role in INTERACTIVE_ROLES:
        return True

    for attribute in INTERACTIVE_ATTRIBUTES:
        if element.has_attribute(attribute):
            return True

    tabindex = element.get_attribute("tabindex")
    return tabindex is not None and tabindex.strip() != "-1"


def _is_shown(element: Element, document: Document) -> Tuple[bool, Optional[Dict[str, int]]]:
    """Visibility predicate plus the rounded rect (sub-pixel boxes count as hidden)."""
    if not is_element_visible(element, document.viewport):
        return False, None
    rect = round_rect(element.bounding_rect())
    return rect["w"] > 0 and rect["h"] > 0, rect


def _optional_attributes(element: Element) -> Dict[str, str]:
    attached: Dict[str, str] = {}
    for key, attribute in OPTIONAL_ATTRIBUTES:
        value = element.get_attribute(attribute)
        if value:
            attached[key] = value
    return attached


def build_node(
    element: Element,
    context: SnapshotContext,
    *,
    with_attributes: bool = True,
    rect: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    try:
        role, name = get_accessibility_info(element, context)
        node: Dict[str, Any] = {
            "role": role,
            "name": name,
            "selector": get_unique_selector(element, context.selectors),
            "rect": rect or round_rect(element.bounding_rect()),
            "state": get_element_state(element, context.document),
            "tagName": element.tag_name.lower(),
        }
        if with_attributes:
            node.update(_optional_attributes(element))
    except NodeProcessingError:
        raise
    except Exception as exc:
        raise NodeProcessingError(
            f"Failed to process <{_safe_tag(element)}>: {exc}",
            context={"tag": _safe_tag(element)},
        ) from exc
    return node


def _safe_tag(element: Element) -> str:
    try:
        return element.tag_name.lower()
    except Exception:
        return "?"


def _children(element: Element) -> List[Element]:
    try:
        return list(element.children)
    except Exception as exc:
        _log_node_failure(NodeProcessingError(f"Failed to read children: {exc}"))
        return []


def _log_node_failure(error: NodeProcessingError) -> None:
    _log_snapshot_event(
        logger,
        level=logging.DEBUG,
        event="node_skipped",
        error=error.message,
    )


def capture_outline(
    document: Document,
    options: SnapshotOptions,
    context: SnapshotContext,
    metrics: TraversalMetrics,
) -> List[Dict[str, Any]]:
    nodes: List[Dict[str, Any]] = []
    start = time.perf_counter()
    stack: List[Element] = [document.document_element]
    while stack:
        element = stack.pop()
        stack.extend(reversed(_children(element)))
        metrics.node_count += 1
        try:
            if not is_element_interactive(element):
                continue
            rect = None
            if options.visible_only:
                shown, rect = _is_shown(element, document)
                if not shown:
                    continue
            nodes.append(build_node(element, context, rect=rect))
        except NodeProcessingError as exc:
            _log_node_failure(exc)
        except Exception as exc:
            _log_node_failure(NodeProcessingError(str(exc)))
    metrics.processing_ms = _elapsed_ms(start)
    return nodes


def compute_interactive_flags(
    root: Element,
) -> Tuple[Dict[int, bool], Dict[int, bool], int]:
    """
    Return (interactive, has_interactive_descendant, walked) keyed by id(element).

    `has_interactive_descendant` is the strict-subtree flag: True iff some
    descendant (not the element itself) is interactive. Computed by a reverse
    sweep over the pre-order so every child is settled before its parent.
    """
    order: List[Element] = []
    stack: List[Element] = [root]
    while stack:
        element = stack.pop()
        order.append(element)
        stack.extend(reversed(_children(element)))

    interactive: Dict[int, bool] = {}
    descendant: Dict[int, bool] = {}
    for element in reversed(order):
        key = id(element)
        try:
            interactive[key] = is_element_interactive(element)
        except Exception as exc:
            _log_node_failure(NodeProcessingError(f"Interactive check failed: {exc}"))
            interactive[key] = False
        flag = False
        for child in _children(element):
            child_key = id(child)
            if interactive.get(child_key) or descendant.get(child_key):
                flag = True
                break
        descendant[key] = flag
    return interactive, descendant, len(order)


def capture_dom_lite(
    document: Document,
    options: SnapshotOptions,
    context: SnapshotContext,
    metrics: TraversalMetrics,
) -> List[Dict[str, Any]]:
    root = document.body
    if root is None:
        return []

    traversal_start = time.perf_counter()
    interactive, descendant, walked = compute_interactive_flags(root)
    metrics.traversal_ms = _elapsed_ms(traversal_start)
    metrics.node_count = walked

    nodes: List[Dict[str, Any]] = []
    processing_start = time.perf_counter()
    stack: List[Tuple[Element, int, Optional[str]]] = [(root, 0, None)]
    while stack:
        element, level, parent_selector = stack.pop()
        if level > options.max_depth:
            continue
        key = id(element)
        is_interactive = interactive.get(key, False)
        if not (is_interactive or descendant.get(key, False) or level == 0):
            continue
        try:
            rect = None
            if options.visible_only and level > 0:
                shown, rect = _is_shown(element, document)
                if not shown:
                    continue
            node = build_node(element, context, with_attributes=is_interactive, rect=rect)
        except NodeProcessingError as exc:
            _log_node_failure(exc)
            continue
        except Exception as exc:
            _log_node_failure(NodeProcessingError(str(exc)))
            continue

        node["level"] = level
        if parent_selector:
            node["parent"] = parent_selector
        nodes.append(node)

        for child in reversed(_children(element)):
            stack.append((child, level + 1, node["selector"]))
    metrics.processing_ms = _elapsed_ms(processing_start)
    return nodes


def _reduced_node(element: Element, document: Document, visible_only: bool) -> Optional[Dict[str, Any]]:
    rect = round_rect(element.bounding_rect())
    if visible_only and (rect["w"] <= 0 or rect["h"] <= 0):
        return None
    return {
        "selector": get_simple_selector(element, document.document_element),
        "rect": rect,
        "state": {},
        "tagName": element.tag_name.lower(),
    }


def capture_reduced(document: Document, options: SnapshotOptions) -> List[Dict[str, Any]]:
    """Tag, rect and positional selector only; dom-lite keeps every element."""
    nodes: List[Dict[str, Any]] = []
    if options.mode == "outline":
        stack: List[Element] = [document.document_element]
        while stack:
            element = stack.pop()
            stack.extend(reversed(_children(element)))
            try:
                if not is_element_interactive(element):
                    continue
                node = _reduced_node(element, document, options.visible_only)
            except Exception as exc:
                _log_node_failure(NodeProcessingError(str(exc)))
                continue
            if node is not None:
                nodes.append(node)
        return nodes

    root = document.body
    if root is None:
        return nodes
    tree_stack: List[Tuple[Element, int, Optional[str]]] = [(root, 0, None)]
    while tree_stack:
        element, level, parent_selector = tree_stack.pop()
        if level > options.max_depth:
            continue
        try:
            node = _reduced_node(element, document, options.visible_only and level > 0)
        except Exception as exc:
            _log_node_failure(NodeProcessingError(str(exc)))
            continue
        if node is None:
            continue
        node["level"] = level
        if parent_selector:
            node["parent"] = parent_selector
        nodes.append(node)
        for child in reversed(_children(element)):
            tree_stack.append((child, level + 1, node["selector"]))
    return nodes


def _base_meta(document: Document, options: SnapshotOptions, duration_ms: float) -> Dict[str, Any]:
    meta: Dict[str, Any] = {
        "url": document.url,
        "title": document.title,
        "timestamp": _iso_timestamp(),
        "durationMs": round(duration_ms, 3),
        "visibleOnly": options.visible_only,
    }
    if options.mode == "dom-lite":
        meta["maxDepth"] = options.max_depth
    return meta


def run_snapshot(
    document: Document,
    options: SnapshotOptions,
    *,
    reduced: bool = False,
) -> Dict[str, Any]:
    """Run one snapshot and return the wire-shaped `SnapshotResult` dict."""
    start = time.perf_counter()
    try:
        if reduced:
            nodes = capture_reduced(document, options)
            meta = _base_meta(document, options, _elapsed_ms(start))
        else:
            context = SnapshotContext.build(document)
            metrics = TraversalMetrics()
            if options.mode == "dom-lite":
                nodes = capture_dom_lite(document, options, context, metrics)
            else:
                nodes = capture_outline(document, options, context, metrics)
            metrics.memory_peak_mb = _memory_peak_mb()
            meta = _base_meta(document, options, _elapsed_ms(start))
            meta["performance"] = metrics.to_wire("O(n) optimized")
    except Exception as exc:
        logger.exception("Snapshot traversal failed mode=%s", options.mode)
        return {
            "ok": False,
            "cmd": options.cmd,
            "nodes": [],
            "error": str(exc) or "Unknown error during snapshot",
        }

    _log_snapshot_event(
        logger,
        level=logging.DEBUG,
        event="traversal_done",
        mode=options.mode,
        reduced=reduced,
        nodes=len(nodes),
        duration_ms=meta["durationMs"],
    )
    return {"ok": True, "cmd": options.cmd, "nodes": nodes, "meta": meta}
