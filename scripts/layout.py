"""
Column width allocation.

Splits the usable terminal width between columns in proportion to each
field's display weight. A table row costs one border unit plus a
separator and two padding spaces per column: "│ a │ b │".
"""

import shutil
from typing import Sequence

from fields import DEFAULT_WEIGHT, FieldDescriptor

MIN_COLUMN_WIDTH = 6
COLUMN_OVERHEAD = 3
BORDER_WIDTH = 1
DEFAULT_TERMINAL_WIDTH = 120


def overhead(column_count: int) -> int:
    """Characters a table spends on borders and padding."""
    if column_count == 0:
        return 0
    return column_count * COLUMN_OVERHEAD + BORDER_WIDTH


def allocate(fields: Sequence[FieldDescriptor], total_width: int) -> list[int]:
    """Per-column widths for a table total_width characters wide.

    Widths never drop below MIN_COLUMN_WIDTH; when the terminal is too
    narrow for that the table overflows instead.
    """
    if not fields:
        return []

    floor_width = MIN_COLUMN_WIDTH * len(fields)
    usable = max(total_width - overhead(len(fields)), floor_width)

    weights = [f.weight if f.weight > 0 else DEFAULT_WEIGHT for f in fields]
    total_weight = sum(weights)
    widths = [max(int(w / total_weight * usable), MIN_COLUMN_WIDTH) for w in weights]

    remaining = usable - sum(widths)
    while remaining > 0:
        widest = widths.index(max(widths))
        widths[widest] += 1
        remaining -= 1
    # Clamping to the minimum can overshoot; take it back from the widest
    while remaining < 0:
        shrinkable = [i for i, w in enumerate(widths) if w > MIN_COLUMN_WIDTH]
        if not shrinkable:
            break
        widest = max(shrinkable, key=lambda i: widths[i])
        widths[widest] -= 1
        remaining += 1

    return widths


def index_width(row_count: int) -> int:
    """Width of the row-number column for row_count rows."""
    return max(len(str(row_count)), 1)


def plan_columns(
    fields: Sequence[FieldDescriptor],
    total_width: int,
    row_count: int = 0,
    numbered: bool = False,
) -> list[int]:
    """Widths for the field columns, leaving room for a row-number column."""
    if numbered:
        total_width -= index_width(row_count) + COLUMN_OVERHEAD
    return allocate(fields, total_width)


def terminal_width(default: int = DEFAULT_TERMINAL_WIDTH) -> int:
    return shutil.get_terminal_size((default, 24)).columns
