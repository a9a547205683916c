"""Aligned box-drawn table of records."""

from typing import Any, Mapping, Sequence

from fields import FieldDescriptor
from formatting import (
    BOX_B,
    BOX_BL,
    BOX_BR,
    BOX_H,
    BOX_L,
    BOX_R,
    BOX_T,
    BOX_TL,
    BOX_TR,
    BOX_V,
    BOX_X,
    chunk_fixed_width,
    colorize,
    pad,
    truncate,
    wrap_text,
)
from layout import index_width
from normalize import cell_value


def format_cell(text: str, descriptor: FieldDescriptor, width: int) -> list[str]:
    """Wrap a normalized value into lines no wider than width."""
    if descriptor.wrap == "chunk":
        wrapped = "\n".join(chunk_fixed_width(line, width) for line in text.split("\n"))
    else:
        wrapped = "\n".join(wrap_text(line, width) for line in text.split("\n"))
    # Unsplittable words overflow wrap_text; cut them at the column edge
    return [truncate(line, width) for line in wrapped.split("\n")]


def _rule(left: str, mid: str, right: str, widths: Sequence[int]) -> str:
    return left + mid.join(BOX_H * (w + 2) for w in widths) + right


def _row(cells: Sequence[list[str]], widths: Sequence[int]) -> list[str]:
    height = max((len(c) for c in cells), default=1)
    lines = []
    for i in range(height):
        parts = [pad(c[i] if i < len(c) else "", w) for c, w in zip(cells, widths)]
        lines.append(f"{BOX_V} " + f" {BOX_V} ".join(parts) + f" {BOX_V}")
    return lines


def _color_lines(lines: list[str], descriptor: FieldDescriptor, value: str, use_color: bool) -> list[str]:
    color = descriptor.value_colors.get(value)
    if not color:
        return lines
    return [colorize(line, color, use_color) for line in lines]


def render_table(
    records: Sequence[Mapping[str, Any]],
    fields: Sequence[FieldDescriptor],
    widths: Sequence[int],
    use_color: bool = True,
    numbered: bool = False,
) -> str:
    """Render records as a table, one row per record, header first."""
    if len(fields) != len(widths):
        raise ValueError(f"{len(fields)} fields but {len(widths)} widths")
    if not fields:
        return ""

    widths = list(widths)
    header = [
        [colorize(truncate(f.label, w), f.color, use_color, bold=True)] for f, w in zip(fields, widths)
    ]
    if numbered:
        num_width = index_width(len(records))
        widths.insert(0, num_width)
        header.insert(0, [colorize(truncate("#", num_width), "blue", use_color, bold=True)])

    lines = [_rule(BOX_TL, BOX_T, BOX_TR, widths)]
    lines.extend(_row(header, widths))

    for position, record in enumerate(records, start=1):
        lines.append(_rule(BOX_L, BOX_X, BOX_R, widths))
        cells = []
        if numbered:
            cells.append([str(position)])
        for descriptor, width in zip(fields, widths[1:] if numbered else widths):
            value = cell_value(record, descriptor)
            cells.append(_color_lines(format_cell(value, descriptor, width), descriptor, value, use_color))
        lines.extend(_row(cells, widths))

    lines.append(_rule(BOX_BL, BOX_B, BOX_BR, widths))
    return "\n".join(lines)


def render_details(
    record: Mapping[str, Any],
    fields: Sequence[FieldDescriptor],
    width: int = 72,
    use_color: bool = True,
) -> str:
    """Label/value listing of every field of one record."""
    label_width = max((len(f.label) for f in fields), default=0) + 1
    value_width = max(width - label_width - 1, 10)
    lines = []
    for descriptor in fields:
        value = cell_value(record, descriptor)
        label = colorize(pad(f"{descriptor.label}:", label_width), descriptor.color, use_color)
        wrapped = format_cell(value, descriptor, value_width)
        lines.append(f"{label} {wrapped[0]}")
        lines.extend(" " * (label_width + 1) + extra for extra in wrapped[1:])
    return "\n".join(lines)
