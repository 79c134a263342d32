"""Shape reconstruction from presentation-state graphic data.

Graphic data is a flat list ``[x1, y1, x2, y2, ...]`` in image pixel space.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Circle:
    center_x: float
    center_y: float
    radius: float


@dataclass(frozen=True)
class Ellipse:
    center_x: float
    center_y: float
    radius_x: float
    radius_y: float
    rotation_degrees: float


def polyline_points(graphic_data: Sequence[float]) -> list[tuple[float, float]]:
    """Pair up coordinates; a trailing unpaired value is ignored."""

    return [
        (float(graphic_data[i]), float(graphic_data[i + 1]))
        for i in range(0, len(graphic_data) - 1, 2)
    ]


def circle_from_graphic_data(graphic_data: Sequence[float]) -> Optional[Circle]:
    """Center point followed by a point on the circumference."""

    if len(graphic_data) < 4:
        return None
    cx, cy, px, py = (float(v) for v in graphic_data[:4])
    return Circle(center_x=cx, center_y=cy, radius=math.hypot(px - cx, py - cy))


def ellipse_from_graphic_data(graphic_data: Sequence[float]) -> Optional[Ellipse]:
    """Major axis endpoints followed by minor axis endpoints.

    The center is the midpoint of the major axis and the rotation is the angle
    of the major axis vector.
    """

    if len(graphic_data) < 8:
        return None
    ax1, ay1, ax2, ay2, bx1, by1, bx2, by2 = (float(v) for v in graphic_data[:8])
    return Ellipse(
        center_x=(ax1 + ax2) / 2,
        center_y=(ay1 + ay2) / 2,
        radius_x=math.hypot(ax2 - ax1, ay2 - ay1) / 2,
        radius_y=math.hypot(bx2 - bx1, by2 - by1) / 2,
        rotation_degrees=math.degrees(math.atan2(ay2 - ay1, ax2 - ax1)),
    )
