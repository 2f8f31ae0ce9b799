from datetime import datetime, timezone
from typing import List, Literal, Optional


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

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [[str(cell).replace("|", "\\|") for cell in row] for row in rows]

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


def _group_indian(n: int) -> str:
    # 1234567 -> 12,34,567 (last three digits, then pairs)
    digits = str(n)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_amount(amount: Optional[float]) -> str:
    """Rupee amount with Indian digit grouping; paise shown only when non-zero."""
    if amount is None:
        return "₹-"
    sign = "-" if amount < 0 else ""
    paise_total = round(abs(amount) * 100)
    rupees, paise = divmod(paise_total, 100)
    text = _group_indian(rupees)
    if paise:
        text += f".{paise:02d}"
    return f"{sign}₹{text}"


def format_date(value: Optional[datetime]) -> str:
    """e.g. '5 Mar 2026, 02:30 PM'; 'N/A' when missing."""
    if value is None:
        return "N/A"
    return f"{value.day} {value.strftime('%b %Y, %I:%M %p')}"


def format_short_date(value: datetime, with_year: bool = False) -> str:
    text = f"{value.day} {value.strftime('%b')}"
    if with_year:
        text += f" {value.year}"
    return text


def time_ago(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    if value is None:
        return ""
    if now is None:
        now = datetime.now(value.tzinfo)
    # naive stamps are taken as UTC when mixed with aware ones
    if value.tzinfo is None and now.tzinfo is not None:
        value = value.replace(tzinfo=timezone.utc)
    elif now.tzinfo is None and value.tzinfo is not None:
        now = now.replace(tzinfo=timezone.utc)
    seconds = int((now - value).total_seconds())

    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 604800:
        return f"{seconds // 86400}d ago"
    return format_short_date(value, with_year=True)
