"""Snapshot data model.

Wire names are camelCase, matching what the browser-side script emits;
Python attributes are snake_case. Serialize with `to_wire()` so absent
optional fields stay absent.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .settings import DEFAULT_MAX_DEPTH

SnapshotMode = Literal["outline", "dom-lite"]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ElementRect(_WireModel):
    x: int = 0
    y: int = 0
    w: int = Field(default=0, ge=0)
    h: int = Field(default=0, ge=0)


class ElementState(_WireModel):
    editable: Optional[bool] = None
    disabled: Optional[bool] = None
    value: Optional[str] = None
    checked: Optional[bool] = None
    selected: Optional[bool] = None
    expanded: Optional[bool] = None
    hidden: Optional[bool] = None
    focused: Optional[bool] = None


class SnapshotNode(_WireModel):
    # role/name are absent only on reduced-feature snapshots
    role: Optional[str] = None
    name: Optional[str] = None
    selector: str
    rect: ElementRect = Field(default_factory=ElementRect)
    state: ElementState = Field(default_factory=ElementState)
    tag_name: Optional[str] = None
    id: Optional[str] = None
    class_name: Optional[str] = None
    href: Optional[str] = None
    src: Optional[str] = None
    alt: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    placeholder: Optional[str] = None
    aria_label: Optional[str] = None
    aria_role: Optional[str] = None
    level: Optional[int] = None
    parent: Optional[str] = None


class SnapshotOptions(_WireModel):
    mode: SnapshotMode = "outline"
    visible_only: bool = False
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)

    @property
    def cmd(self) -> str:
        return f"snapshot.{self.mode}"


class PerformanceInfo(_WireModel):
    algorithm: str
    node_count: int = 0
    traversal_ms: Optional[float] = None
    processing_ms: float = 0
    memory_peak_mb: float = Field(default=0, alias="memoryPeakMB")
    algorithms_used: Optional[List[str]] = None


class SnapshotMeta(_WireModel):
    url: str = ""
    title: str = ""
    timestamp: str = ""
    duration_ms: float = 0
    visible_only: bool = False
    max_depth: Optional[int] = None
    performance: Optional[PerformanceInfo] = None


class SnapshotResult(_WireModel):
    ok: bool
    cmd: str
    nodes: List[SnapshotNode] = Field(default_factory=list)
    meta: Optional[SnapshotMeta] = None
    error: Optional[str] = None


class SnapshotErrorEnvelope(_WireModel):
    success: Literal[False] = False
    error: str
    code: int
    kind: str
    timestamp: str
