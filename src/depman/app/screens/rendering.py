"""Small text-layout helpers shared by the screen renderers."""

from rich.text import Text

KEY_COLUMN_WIDTH = 14


def truncate(value: str, max_length: int) -> str:
    """Shorten a string to max_length, marking the cut with "..."."""
    if len(value) <= max_length:
        return value
    if max_length <= 3:
        return value[:max_length]
    return value[: max_length - 3] + "..."


def box(lines: list[Text], width: int, border_style: str) -> list[Text]:
    """Draw a rounded border of the given outer width around lines."""
    inner = max(1, width - 4)
    framed = [Text("╭" + "─" * (width - 2) + "╮", style=border_style)]
    for line in lines:
        content = line.copy()
        content.truncate(inner, overflow="ellipsis", pad=True)
        row = Text("│ ", style=border_style)
        row.append_text(content)
        row.append(" │", style=border_style)
        framed.append(row)
    framed.append(Text("╰" + "─" * (width - 2) + "╯", style=border_style))
    return framed


def side_by_side(left: list[Text], right: list[Text], gap: int = 1) -> list[Text]:
    """Join two equally wide columns line by line."""
    left_width = max((line.cell_len for line in left), default=0)
    rows = []
    for index in range(max(len(left), len(right))):
        row = left[index].copy() if index < len(left) else Text("")
        row.pad_right(left_width - row.cell_len + gap)
        if index < len(right):
            row.append_text(right[index])
        rows.append(row)
    return rows


def centered(message: str, width: int, height: int, style: str = "") -> Text:
    """Place a single line in the middle of a width x height area."""
    lines = [Text("") for _ in range(max(0, height // 2 - 1))]
    line = Text(message, style=style)
    line.align("center", width)
    lines.append(line)
    return Text("\n").join(lines)
