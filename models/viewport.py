# models/viewport.py
"""Per-session axis domains and plot interaction tool.

A domain is either an explicit ``(lo, hi)`` pair or the ``AUTO`` sentinel,
meaning "fit to the data". Pan and zoom need concrete numbers, so callers
pass the data-fitted bounds used to resolve an ``AUTO`` axis.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

AUTO = "auto"
DEFAULT_PADDING = 0.1

TOOL_PAN = "pan"
TOOL_SELECT = "select"
TOOLS = (TOOL_PAN, TOOL_SELECT)

Domain = Union[str, Tuple[float, float]]
Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


def normalize_domain(domain) -> Domain:
    """Accept ``"auto"``, ``None`` or a two-item sequence of numbers."""
    if domain is None or domain == AUTO:
        return AUTO
    lo, hi = domain
    if isinstance(lo, str) or isinstance(hi, str):
        # a half-"auto" pair from a renderer counts as fully automatic
        return AUTO
    lo, hi = float(lo), float(hi)
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"domain bounds must be finite, got {domain!r}")
    return (min(lo, hi), max(lo, hi))


def normalize_tool(tool) -> Optional[str]:
    if tool in (None, "", "none"):
        return None
    if tool not in TOOLS:
        raise ValueError(f"unknown plot tool {tool!r}")
    return tool


def padded_domain(values: Iterable[float], padding: float = DEFAULT_PADDING) -> Optional[Tuple[float, float]]:
    """Return the min/max of the finite *values*, widened by *padding* of the span.

    A zero span is widened by one unit on each side. Returns None when there
    are no finite values.
    """
    finite = [float(v) for v in values if isinstance(v, (int, float)) and math.isfinite(v)]
    if not finite:
        return None
    lo, hi = min(finite), max(finite)
    span = hi - lo
    pad = span * padding if span > 0 else 1.0
    return (lo - pad, hi + pad)


def rows_in_box(rows: Sequence[Mapping[str, float]], x_field: str, y_field: str,
                x0: float, y0: float, x1: float, y1: float,
                indices: Optional[Sequence[int]] = None) -> List[int]:
    """Indices of rows whose (x, y) lies inside the rectangle, bounds inclusive."""
    lx, hx = min(x0, x1), max(x0, x1)
    ly, hy = min(y0, y1), max(y0, y1)
    hits = []
    for pos, row in enumerate(rows):
        x = row.get(x_field)
        y = row.get(y_field)
        if x is None or y is None or not (math.isfinite(x) and math.isfinite(y)):
            continue
        if lx <= x <= hx and ly <= y <= hy:
            hits.append(indices[pos] if indices is not None else pos)
    return hits


@dataclass
class ViewportState:
    x_domain: Domain = AUTO
    y_domain: Domain = AUTO
    active_tool: Optional[str] = None

    def __post_init__(self):
        self.x_domain = normalize_domain(self.x_domain)
        self.y_domain = normalize_domain(self.y_domain)
        self.active_tool = normalize_tool(self.active_tool)

    def copy(self) -> "ViewportState":
        return ViewportState(self.x_domain, self.y_domain, self.active_tool)

    def is_auto(self) -> bool:
        return self.x_domain == AUTO and self.y_domain == AUTO

    def resolved(self, bounds: Optional[Bounds] = None) -> Tuple[Optional[Tuple[float, float]], Optional[Tuple[float, float]]]:
        """Concrete (x, y) domains; an AUTO axis takes its value from *bounds*."""
        bx, by = bounds if bounds is not None else (None, None)
        x = bx if self.x_domain == AUTO else self.x_domain
        y = by if self.y_domain == AUTO else self.y_domain
        return x, y

    def set_domains(self, x_domain=None, y_domain=None) -> None:
        if x_domain is not None:
            self.x_domain = normalize_domain(x_domain)
        if y_domain is not None:
            self.y_domain = normalize_domain(y_domain)

    def pan_by(self, dx: float, dy: float, bounds: Optional[Bounds] = None) -> bool:
        """Shift both domains. Returns False when nothing could be resolved."""
        x, y = self.resolved(bounds)
        changed = False
        if x is not None:
            self.x_domain = (x[0] + dx, x[1] + dx)
            changed = True
        if y is not None:
            self.y_domain = (y[0] + dy, y[1] + dy)
            changed = True
        return changed

    def zoom_by(self, factor: float, center: Optional[Tuple[float, float]] = None,
                bounds: Optional[Bounds] = None) -> bool:
        """Scale both spans by *factor* (< 1 zooms in) about *center*.

        Without a center each axis zooms about its own midpoint.
        """
        if not (isinstance(factor, (int, float)) and math.isfinite(factor) and factor > 0):
            logger.warning("Ignoring zoom with invalid factor %r", factor)
            return False
        x, y = self.resolved(bounds)
        if x is None and y is None:
            return False
        if x is not None:
            cx = center[0] if center is not None else (x[0] + x[1]) / 2.0
            self.x_domain = (cx - (cx - x[0]) * factor, cx + (x[1] - cx) * factor)
        if y is not None:
            cy = center[1] if center is not None else (y[0] + y[1]) / 2.0
            self.y_domain = (cy - (cy - y[0]) * factor, cy + (y[1] - cy) * factor)
        return True

    def reset(self, bounds: Optional[Bounds] = None) -> None:
        """Back to data-fitted domains (AUTO where no data) and no active tool."""
        bx, by = bounds if bounds is not None else (None, None)
        self.x_domain = bx if bx is not None else AUTO
        self.y_domain = by if by is not None else AUTO
        self.active_tool = None

    def set_tool(self, tool) -> None:
        self.active_tool = normalize_tool(tool)

    def toggle_tool(self, tool) -> Optional[str]:
        """Select *tool*, or clear it when it is already active."""
        tool = normalize_tool(tool)
        self.active_tool = None if self.active_tool == tool else tool
        return self.active_tool

    def to_dict(self) -> dict:
        def _dom(d):
            return AUTO if d == AUTO else [d[0], d[1]]
        return {
            "x_domain": _dom(self.x_domain),
            "y_domain": _dom(self.y_domain),
            "active_tool": self.active_tool,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ViewportState":
        data = data or {}
        return cls(
            x_domain=data.get("x_domain", AUTO),
            y_domain=data.get("y_domain", AUTO),
            active_tool=data.get("active_tool"),
        )
