"""Browser-side snapshot scripts and the `SnapshotScript` value handed to channels."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace

from .dom import Document
from .models import SnapshotOptions
from .traversal import run_snapshot

_SNAPSHOT_JS = """
(options) => {
  const startTime = performance.now();
  const mode = options.mode === "dom-lite" ? "dom-lite" : "outline";
  const cmd = "snapshot." + mode;
  const visibleOnly = Boolean(options.visibleOnly);
  const maxDepth = Number.isInteger(options.maxDepth) && options.maxDepth >= 0 ? options.maxDepth : 10;

  const INTERACTIVE_TAGS = new Set(["button", "input", "textarea", "select"]);
  const INTERACTIVE_ROLES = new Set([
    "button", "link", "textbox", "combobox", "listbox", "menuitem",
    "menuitemcheckbox", "menuitemradio", "option", "radio", "checkbox",
    "slider", "spinbutton", "tab", "treeitem"
  ]);
  const INTERACTIVE_ATTRIBUTES = ["onclick", "onmousedown", "onmouseup", "onchange"];
  const EDITABLE_TAGS = new Set(["input", "textarea", "select"]);
  const TAG_ROLES = {
    button: "button", textarea: "textbox", select: "combobox", img: "img",
    h1: "heading", h2: "heading", h3: "heading", h4: "heading", h5: "heading", h6: "heading",
    nav: "navigation", main: "main", article: "article", section: "region",
    aside: "complementary", header: "banner", footer: "contentinfo", form: "form",
    table: "table", td: "cell", th: "columnheader", tr: "row",
    ul: "list", ol: "list", li: "listitem", dl: "list", dt: "term", dd: "definition"
  };
  const INPUT_ROLES = {
    checkbox: "checkbox", radio: "radio", range: "slider", search: "searchbox",
    number: "spinbutton", file: "button", submit: "button", button: "button",
    reset: "button", image: "button"
  };
  const OPTIONAL_ATTRIBUTES = [
    ["id", "id"], ["className", "class"], ["href", "href"], ["src", "src"],
    ["alt", "alt"], ["title", "title"], ["type", "type"], ["placeholder", "placeholder"],
    ["ariaLabel", "aria-label"], ["ariaRole", "role"]
  ];

  const esc = (value) => {
    if (window.CSS && typeof window.CSS.escape === "function") {
      return window.CSS.escape(String(value));
    }
    return String(value).replace(/([ #;?%&,.+*~':"!^$[\\]()=>|\\/])/g, "\\\\$1");
  };
  const collapse = (value) => String(value || "").replace(/\\s+/g, " ").trim();
  const tagOf = (el) => el.tagName.toLowerCase();
  const childrenOf = (el) => Array.from(el.children || []);
  const classTokens = (el) =>
    typeof el.className === "string"
      ? Array.from(new Set(el.className.split(/\\s+/).filter(Boolean))).sort()
      : [];
  const inputType = (el) => (tagOf(el) === "input" ? String(el.type || "text").toLowerCase() : null);
  const bump = (map, key) => map.set(key, (map.get(key) || 0) + 1);

  const root = document.documentElement;
  const idCounts = new Map();
  const testIdCounts = new Map();
  const dataTestCounts = new Map();
  const classKeyCounts = new Map();
  const classTokenCounts = new Map();
  const elementsById = new Map();
  const labelsByTarget = new Map();

  const buildCaches = () => {
    const stack = [root];
    while (stack.length) {
      const el = stack.pop();
      if (el.id) {
        bump(idCounts, el.id);
        if (!elementsById.has(el.id)) elementsById.set(el.id, el);
      }
      const testId = el.getAttribute("data-testid");
      if (testId) bump(testIdCounts, testId);
      const dataTest = el.getAttribute("data-test");
      if (dataTest) bump(dataTestCounts, dataTest);
      const classes = classTokens(el);
      if (classes.length) {
        bump(classKeyCounts, classes.join("."));
        classes.forEach((token) => bump(classTokenCounts, token));
      }
      if (tagOf(el) === "label") {
        const target = el.getAttribute("for");
        if (target && !labelsByTarget.has(target)) labelsByTarget.set(target, el);
      }
      const kids = childrenOf(el);
      for (let i = kids.length - 1; i >= 0; i--) stack.push(kids[i]);
    }
  };

  const hasUniqueId = (el) => Boolean(el.id) && idCounts.get(el.id) === 1;

  const uniqueSelector = (el) => {
    if (hasUniqueId(el)) return "#" + esc(el.id);
    const testId = el.getAttribute("data-testid");
    if (testId && testIdCounts.get(testId) === 1) return `[data-testid="${esc(testId)}"]`;
    const dataTest = el.getAttribute("data-test");
    if (dataTest && dataTestCounts.get(dataTest) === 1) return `[data-test="${esc(dataTest)}"]`;
    const classes = classTokens(el);
    if (
      classes.length &&
      classKeyCounts.get(classes.join(".")) === 1 &&
      Math.min(...classes.map((token) => classTokenCounts.get(token) || 0)) === 1
    ) {
      return "." + classes.map(esc).join(".");
    }
    const path = [];
    let current = el;
    while (current && current !== root) {
      let segment = tagOf(current);
      if (hasUniqueId(current)) {
        path.push(segment + "#" + esc(current.id));
        break;
      }
      const parent = current.parentElement;
      if (parent) {
        const siblings = childrenOf(parent);
        const sameTag = siblings.filter((sibling) => sibling.tagName === current.tagName).length;
        if (sameTag > 1) segment += `:nth-child(${siblings.indexOf(current) + 1})`;
      }
      path.push(segment);
      current = parent;
    }
    return path.length ? path.reverse().join(" > ") : tagOf(el);
  };

  const roleOf = (el) => {
    const explicit = (el.getAttribute("role") || "").trim();
    if (explicit) return explicit;
    const tag = tagOf(el);
    if (tag === "input") return INPUT_ROLES[inputType(el)] || "textbox";
    if (tag === "a") return el.hasAttribute("href") ? "link" : "generic";
    return TAG_ROLES[tag] || "generic";
  };

  const nameOf = (el) => {
    const ariaLabel = (el.getAttribute("aria-label") || "").trim();
    if (ariaLabel) return ariaLabel;
    const labelledBy = (el.getAttribute("aria-labelledby") || "")
      .split(/\\s+/)
      .filter(Boolean)
      .map((id) => elementsById.get(id))
      .filter(Boolean)
      .map((target) => collapse(target.textContent))
      .filter(Boolean)
      .join(" ");
    if (labelledBy) return labelledBy;
    if (el.id && labelsByTarget.has(el.id)) {
      const text = collapse(labelsByTarget.get(el.id).textContent);
      if (text) return text;
    }
    const enclosing = el.parentElement ? el.parentElement.closest("label") : null;
    if (enclosing) {
      const text = collapse(enclosing.textContent);
      if (text) return text;
    }
    for (const attribute of ["title", "placeholder", "alt"]) {
      const text = (el.getAttribute(attribute) || "").trim();
      if (text) return text;
    }
    if (inputType(el) !== "password" && typeof el.value === "string" && el.value.trim()) {
      return el.value.trim();
    }
    let text = collapse(el.textContent);
    if (text.length > 50) text = text.slice(0, 47) + "...";
    return text || tagOf(el);
  };

  const stateOf = (el) => {
    const state = {};
    if (el.isContentEditable || EDITABLE_TAGS.has(tagOf(el))) state.editable = true;
    if ("disabled" in el) state.disabled = Boolean(el.disabled);
    if (typeof el.value === "string") {
      state.value = inputType(el) === "password" ? (el.value ? "***" : "") : el.value;
    }
    if ("checked" in el) state.checked = Boolean(el.checked);
    if ("selected" in el) state.selected = Boolean(el.selected);
    const expanded = el.getAttribute("aria-expanded");
    if (expanded !== null) state.expanded = expanded.trim().toLowerCase() === "true";
    const style = window.getComputedStyle(el);
    if (style.display === "none" || style.visibility === "hidden") state.hidden = true;
    state.focused = document.activeElement === el;
    return state;
  };

  const isVisible = (el) => {
    if (!el || el.offsetParent === null) return false;
    const style = window.getComputedStyle(el);
    if (style.display === "none" || style.visibility === "hidden" || parseFloat(style.opacity) === 0) {
      return false;
    }
    const rect = el.getBoundingClientRect();
    return (
      rect.width > 0 && rect.height > 0 &&
      rect.top < window.innerHeight && rect.bottom > 0 &&
      rect.left < window.innerWidth && rect.right > 0
    );
  };

  const rectOf = (el) => {
    const rect = el.getBoundingClientRect();
    return {
      x: Math.round(rect.left),
      y: Math.round(rect.top),
      w: Math.max(0, Math.round(rect.width)),
      h: Math.max(0, Math.round(rect.height))
    };
  };

  const isShown = (el) => {
    if (!isVisible(el)) return null;
    const rect = rectOf(el);
    return rect.w > 0 && rect.h > 0 ? rect : null;
  };

  const isInteractive = (el) => {
    const tag = tagOf(el);
    if (INTERACTIVE_TAGS.has(tag)) return true;
    if (tag === "a") return el.hasAttribute("href");
    const role = el.getAttribute("role");
    if (role && INTERACTIVE_ROLES.has(role)) return true;
    for (const attribute of INTERACTIVE_ATTRIBUTES) {
      if (el.hasAttribute(attribute)) return true;
    }
    const tabindex = el.getAttribute("tabindex");
    return tabindex !== null && tabindex.trim() !== "-1";
  };

  const buildNode = (el, withAttributes, rect) => {
    const node = {
      role: roleOf(el),
      name: nameOf(el),
      selector: uniqueSelector(el),
      rect: rect || rectOf(el),
      state: stateOf(el),
      tagName: tagOf(el)
    };
    if (withAttributes) {
      for (const [key, attribute] of OPTIONAL_ATTRIBUTES) {
        const value = el.getAttribute(attribute);
        if (value) node[key] = value;
      }
    }
    return node;
  };

  const metrics = { nodeCount: 0, traversalMs: 0, processingMs: 0 };

  const captureOutline = () => {
    const nodes = [];
    const started = performance.now();
    const stack = [root];
    while (stack.length) {
      const el = stack.pop();
      const kids = childrenOf(el);
      for (let i = kids.length - 1; i >= 0; i--) stack.push(kids[i]);
      metrics.nodeCount++;
      try {
        if (!isInteractive(el)) continue;
        let rect = null;
        if (visibleOnly) {
          rect = isShown(el);
          if (!rect) continue;
        }
        nodes.push(buildNode(el, true, rect));
      } catch (e) {
        // element skipped
      }
    }
    metrics.processingMs = performance.now() - started;
    return nodes;
  };

  const captureDomLite = () => {
    const body = document.body;
    if (!body) return [];
    const traversalStart = performance.now();
    const order = [];
    const walk = [body];
    while (walk.length) {
      const el = walk.pop();
      order.push(el);
      const kids = childrenOf(el);
      for (let i = kids.length - 1; i >= 0; i--) walk.push(kids[i]);
    }
    const interactive = new Map();
    const descendant = new Map();
    for (let i = order.length - 1; i >= 0; i--) {
      const el = order[i];
      let own = false;
      try {
        own = isInteractive(el);
      } catch (e) {
        own = false;
      }
      interactive.set(el, own);
      descendant.set(el, childrenOf(el).some((child) => interactive.get(child) || descendant.get(child)));
    }
    metrics.traversalMs = performance.now() - traversalStart;
    metrics.nodeCount = order.length;

    const nodes = [];
    const processingStart = performance.now();
    const stack = [[body, 0, null]];
    while (stack.length) {
      const [el, level, parentSelector] = stack.pop();
      if (level > maxDepth) continue;
      const own = interactive.get(el) || false;
      if (!(own || descendant.get(el) || level === 0)) continue;
      let node;
      try {
        let rect = null;
        if (visibleOnly && level > 0) {
          rect = isShown(el);
          if (!rect) continue;
        }
        node = buildNode(el, own, rect);
      } catch (e) {
        continue;
      }
      node.level = level;
      if (parentSelector) node.parent = parentSelector;
      nodes.push(node);
      const kids = childrenOf(el);
      for (let i = kids.length - 1; i >= 0; i--) stack.push([kids[i], level + 1, node.selector]);
    }
    metrics.processingMs = performance.now() - processingStart;
    return nodes;
  };

  const round3 = (value) => Math.round(value * 1000) / 1000;

  try {
    buildCaches();
    const nodes = mode === "dom-lite" ? captureDomLite() : captureOutline();
    const memory = performance.memory ? Math.round(performance.memory.usedJSHeapSize / 1048576) : 0;
    const meta = {
      url: window.location.href,
      title: document.title,
      timestamp: new Date().toISOString(),
      durationMs: round3(performance.now() - startTime),
      visibleOnly
    };
    if (mode === "dom-lite") meta.maxDepth = maxDepth;
    meta.performance = {
      algorithm: "O(n) optimized",
      nodeCount: metrics.nodeCount,
      traversalMs: round3(metrics.traversalMs),
      processingMs: round3(metrics.processingMs),
      memoryPeakMB: memory,
      algorithmsUsed: [
        "Iterative pre-order walk with explicit stack",
        "Set lookups for interactive element checks",
        "Reverse pre-order sweep for interactive descendants",
        "Pre-computed selector caches"
      ]
    };
    return JSON.stringify({ ok: true, cmd, nodes, meta });
  } catch (e) {
    return JSON.stringify({
      ok: false,
      cmd,
      nodes: [],
      error: (e && e.message) || String(e) || "Unknown error during snapshot"
    });
  }
}
"""

_REDUCED_SNAPSHOT_JS = """
(options) => {
  const startTime = performance.now();
  const mode = options.mode === "dom-lite" ? "dom-lite" : "outline";
  const cmd = "snapshot." + mode;
  const visibleOnly = Boolean(options.visibleOnly);
  const maxDepth = Number.isInteger(options.maxDepth) && options.maxDepth >= 0 ? options.maxDepth : 10;
  const root = document.documentElement;
  const interactiveTags = new Set(["button", "input", "textarea", "select"]);
  const interactiveRoles = new Set([
    "button", "link", "textbox", "combobox", "listbox", "menuitem",
    "menuitemcheckbox", "menuitemradio", "option", "radio", "checkbox",
    "slider", "spinbutton", "tab", "treeitem"
  ]);

  const tagOf = (el) => el.tagName.toLowerCase();
  const childrenOf = (el) => Array.from(el.children || []);
  const simpleSelector = (el) => {
    const path = [];
    let current = el;
    while (current && current !== root) {
      let segment = tagOf(current);
      const parent = current.parentElement;
      if (parent) segment += `:nth-child(${childrenOf(parent).indexOf(current) + 1})`;
      path.push(segment);
      current = parent;
    }
    return path.length ? path.reverse().join(" > ") : tagOf(el);
  };
  const isInteractive = (el) => {
    const tag = tagOf(el);
    if (interactiveTags.has(tag)) return true;
    if (tag === "a") return el.hasAttribute("href");
    const role = el.getAttribute("role");
    if (role && interactiveRoles.has(role)) return true;
    if (["onclick", "onmousedown", "onmouseup", "onchange"].some((name) => el.hasAttribute(name))) return true;
    const tabindex = el.getAttribute("tabindex");
    return tabindex !== null && tabindex.trim() !== "-1";
  };
  const nodeOf = (el, checkVisible) => {
    const box = el.getBoundingClientRect();
    const rect = {
      x: Math.round(box.left),
      y: Math.round(box.top),
      w: Math.max(0, Math.round(box.width)),
      h: Math.max(0, Math.round(box.height))
    };
    if (checkVisible && (rect.w <= 0 || rect.h <= 0)) return null;
    return { selector: simpleSelector(el), rect, state: {}, tagName: tagOf(el) };
  };

  try {
    const nodes = [];
    if (mode === "outline") {
      const stack = [root];
      while (stack.length) {
        const el = stack.pop();
        const kids = childrenOf(el);
        for (let i = kids.length - 1; i >= 0; i--) stack.push(kids[i]);
        try {
          if (!isInteractive(el)) continue;
          const node = nodeOf(el, visibleOnly);
          if (node) nodes.push(node);
        } catch (e) {
          // element skipped
        }
      }
    } else if (document.body) {
      const stack = [[document.body, 0, null]];
      while (stack.length) {
        const [el, level, parentSelector] = stack.pop();
        if (level > maxDepth) continue;
        let node = null;
        try {
          node = nodeOf(el, visibleOnly && level > 0);
        } catch (e) {
          node = null;
        }
        if (!node) continue;
        node.level = level;
        if (parentSelector) node.parent = parentSelector;
        nodes.push(node);
        const kids = childrenOf(el);
        for (let i = kids.length - 1; i >= 0; i--) stack.push([kids[i], level + 1, node.selector]);
      }
    }
    const meta = {
      url: window.location.href,
      title: document.title,
      timestamp: new Date().toISOString(),
      durationMs: Math.round((performance.now() - startTime) * 1000) / 1000,
      visibleOnly
    };
    if (mode === "dom-lite") meta.maxDepth = maxDepth;
    return JSON.stringify({ ok: true, cmd, nodes, meta });
  } catch (e) {
    return JSON.stringify({ ok: false, cmd, nodes: [], error: (e && e.message) || String(e) });
  }
}
"""


@dataclass(frozen=True)
class SnapshotScript:
    """
    One snapshot request, runnable remotely or in-process.

    `render()` yields a self-invoking JavaScript expression whose value is the
    JSON-encoded result; `run(document)` produces the same JSON from the
    Python traversal.
    """

    options: SnapshotOptions
    reduced: bool = False

    @property
    def cmd(self) -> str:
        return self.options.cmd

    def simplified(self) -> "SnapshotScript":
        return replace(self, reduced=True)

    def render(self) -> str:
        source = _REDUCED_SNAPSHOT_JS if self.reduced else _SNAPSHOT_JS
        arguments = json.dumps(self.options.to_wire(), separators=(",", ":"))
        return f"({source.strip()})({arguments})"

    def run(self, document: Document) -> str:
        result = run_snapshot(document, self.options, reduced=self.reduced)
        return json.dumps(result, ensure_ascii=False)
