from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer

PLACEHOLDER = "--"


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_value(value: Optional[float], digits: int = 2) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:.{digits}f}"


def render_snapshot(payload: Dict[str, Any]) -> None:
    echo_heading("Snapshot")
    echo_key_values(
        [
            ("variant", payload.get("variant")),
            ("reading_count", payload.get("reading_count")),
            ("bucket_count", payload.get("bucket_count")),
            ("unparseable_count", payload.get("unparseable_count")),
            ("summary_source", payload.get("summary_source")),
        ]
    )

    summaries = payload.get("summaries") or {}
    typer.echo()
    echo_heading("Averages")
    if summaries:
        echo_key_values((name, format_value(value)) for name, value in summaries.items())
    else:
        typer.echo("No averages available.")

    chart = payload.get("chart") or []
    typer.echo()
    echo_heading("Chart")
    if not chart:
        typer.echo("No chart points available.")
        return

    fields = list((chart[0].get("values") or {}).keys())
    typer.echo("  ".join(["time", *fields]))
    for point in chart:
        values = point.get("values") or {}
        cells = [str(point.get("time"))]
        cells.extend(format_value(values.get(name)) for name in fields)
        typer.echo("  ".join(cells))
