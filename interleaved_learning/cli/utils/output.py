"""Output formatting helpers for CLI."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional, Sequence

import click


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def format_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Format a simple table with padded columns."""
    rows_list: List[List[str]] = [[_cell(cell) for cell in row] for row in rows]
    widths = [len(str(h)) for h in headers]
    for row in rows_list:
        for idx, cell in enumerate(row):
            if idx >= len(widths):
                widths.append(len(cell))
            else:
                widths[idx] = max(widths[idx], len(cell))

    header_line = " ".join(str(h).ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-" * len(header_line)
    body_lines = [
        " ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip()
        for row in rows_list
    ]
    return "\n".join([header_line, separator] + body_lines)


def echo_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    """Echo a simple table."""
    click.echo(format_table(headers, rows))


def echo_json(data) -> None:
    """Echo JSON with UTF-8 characters preserved."""
    click.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def echo_list(title: str, items: Sequence[str], empty_message: Optional[str] = None) -> None:
    """Echo a titled bullet list."""
    if not items:
        if empty_message:
            click.echo(empty_message)
        return
    click.echo(title)
    for item in items:
        click.echo(f"  - {item}")
