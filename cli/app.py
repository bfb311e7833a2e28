from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from app.schemas import SeriesResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_snapshot
from services.loader import readings_from_csv, readings_from_rows
from services.pipeline import build_default_pipeline, parse_option_text


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for turning sensor reading snapshots into chart series and averages.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _load_json_snapshot(path: Path, variant: str) -> Dict[str, Any]:
    try:
        document = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc.msg}.") from exc
    if isinstance(document, list):
        return {"variant": variant, "readings": document}
    if isinstance(document, dict) and isinstance(document.get("readings"), list):
        return {"variant": document.get("variant", variant), "readings": document["readings"]}
    raise typer.BadParameter(f"{path} must hold a list of readings or an object with 'readings'.")


def _run_locally(path: Path, options: Dict[str, Any], variant: str) -> Dict[str, Any]:
    try:
        if path.suffix.lower() == ".csv":
            readings = readings_from_csv(path.read_text(encoding="utf-8-sig"), variant)
        else:
            snapshot = _load_json_snapshot(path, variant)
            variant = snapshot["variant"]
            readings = readings_from_rows(snapshot["readings"], variant)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    result = build_default_pipeline().run(readings, variant=variant, **options)
    return SeriesResponse.from_snapshot(result).model_dump(mode="json")


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Aggregator API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the service to answer.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("summarize")
def summarize_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="JSON or CSV reading snapshot."
    ),
    variant: str = typer.Option(
        "hydroponic",
        "--variant",
        help="Schema variant of the readings: hydroponic or irrigation.",
    ),
    bucket_ms: Optional[str] = typer.Option(None, "--bucket-ms", help="Bucket width in milliseconds."),
    max_points: Optional[str] = typer.Option(None, "--max-points", help="Maximum chart points."),
    window: Optional[str] = typer.Option(
        None, "--window", help="'all' or the number of most recent buckets to average."
    ),
    local: bool = typer.Option(
        False,
        "--local/--remote",
        help="Run the pipeline in-process instead of calling the service.",
    ),
) -> None:
    """Bucket a reading snapshot and print averages and chart points."""
    state = _get_state(ctx)
    options = {
        "bucket_ms": parse_option_text(bucket_ms),
        "max_points": parse_option_text(max_points),
        "window": parse_option_text(window),
    }

    if local:
        payload = _run_locally(file, options, variant)
    elif file.suffix.lower() == ".csv":
        typer.echo(f"Sending {file} to {state.config.base_url} ...")
        payload = state.client.process_csv(
            file,
            {"variant": variant, "bucket_ms": bucket_ms, "max_points": max_points, "window": window},
        )
    else:
        typer.echo(f"Sending {file} to {state.config.base_url} ...")
        request = _load_json_snapshot(file, variant)
        request.update({key: value for key, value in options.items() if value is not None})
        payload = state.client.process_readings(request)

    render_snapshot(payload)
