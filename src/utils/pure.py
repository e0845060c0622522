from datetime import date, datetime
from typing import List, Literal, Optional, Union


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [[_escape_cell(str(cell)) for cell in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def format_rupiah(amount: Union[int, float]) -> str:
    """Format an amount as Indonesian Rupiah without decimals: Rp 1.500.000"""
    value = int(round(amount))
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,}".replace(",", ".")
    return f"{sign}Rp {grouped}"


def format_date(value: Optional[Union[date, datetime]]) -> str:
    """e.g. 'March 5, 2025'"""
    if value is None:
        return ""
    return f"{value:%B} {value.day}, {value.year}"


def format_datetime(value: Optional[datetime]) -> str:
    """e.g. 'March 5, 2025 at 14:07'"""
    if value is None:
        return ""
    return f"{format_date(value)} at {value:%H:%M}"
