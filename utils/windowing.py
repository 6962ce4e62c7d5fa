"""
Visible-range computation for virtualized lists and grids.
Only the items intersecting the viewport (plus an overscan margin) are rendered.
"""

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Sequence, TypeVar

from utils.constants import DEFAULT_OVERSCAN

T = TypeVar("T")


@dataclass(frozen=True)
class VisibleRange:
    """Inclusive index range; empty when ``end < start``."""

    start: int
    end: int
    offset: float
    total_height: float

    @property
    def is_empty(self) -> bool:
        return self.end < self.start


@dataclass(frozen=True)
class WindowItem(Generic[T]):
    item: T
    index: int
    row: int = 0
    col: int = 0


def visible_range(
    scroll_top: float,
    item_height: float,
    container_height: float,
    item_count: int,
    overscan: int = DEFAULT_OVERSCAN,
) -> VisibleRange:
    """
    Compute which rows are visible at ``scroll_top``.

    Raises:
        ValueError: If item_height is not positive
    """
    if item_height <= 0:
        raise ValueError(f"item_height must be positive, got {item_height}")

    start = max(0, math.floor(scroll_top / item_height) - overscan)
    end = min(
        item_count - 1,
        math.ceil((scroll_top + container_height) / item_height) + overscan,
    )
    return VisibleRange(
        start=start,
        end=end,
        offset=start * item_height,
        total_height=item_count * item_height,
    )


def visible_items(
    items: Sequence[T],
    scroll_top: float,
    item_height: float,
    container_height: float,
    overscan: int = DEFAULT_OVERSCAN,
) -> List[WindowItem[T]]:
    """Items to render for a vertical list, with their absolute indexes."""
    window = visible_range(scroll_top, item_height, container_height, len(items), overscan)
    return [
        WindowItem(item=items[index], index=index, row=index)
        for index in range(window.start, window.end + 1)
    ]


def grid_visible_items(
    items: Sequence[T],
    scroll_top: float,
    item_width: float,
    item_height: float,
    container_width: float,
    container_height: float,
    overscan: int = DEFAULT_OVERSCAN,
) -> List[WindowItem[T]]:
    """Items to render for a fixed-size grid that fills rows left to right."""
    per_row = max(1, math.floor(container_width / item_width))
    total_rows = math.ceil(len(items) / per_row)
    rows = visible_range(scroll_top, item_height, container_height, total_rows, overscan)

    result: List[WindowItem[T]] = []
    for row in range(rows.start, rows.end + 1):
        for col in range(per_row):
            index = row * per_row + col
            if index < len(items):
                result.append(WindowItem(item=items[index], index=index, row=row, col=col))
    return result


def search_items(items: Sequence[Any], term: str, fields: Sequence[str]) -> List[Any]:
    """
    Case-insensitive substring search over string attributes or keys.

    A blank term returns every item.
    """
    if not term.strip():
        return list(items)

    needle = term.lower()

    def field_value(item: Any, name: str) -> Any:
        if isinstance(item, dict):
            return item.get(name)
        return getattr(item, name, None)

    return [
        item
        for item in items
        if any(
            isinstance(field_value(item, name), str)
            and needle in field_value(item, name).lower()
            for name in fields
        )
    ]
