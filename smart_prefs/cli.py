from __future__ import annotations

import asyncio
import json

import typer

from .codec import decode, encode
from .config import Settings

app = typer.Typer(help="Preference store utility")

DATA_TYPES = ("string", "bool", "int", "double")


@app.command()
def settings() -> None:
    """Print the effective settings."""
    typer.echo(Settings().model_dump_json(indent=2))


@app.command()
def demo(
    fail_first: int = typer.Option(0, help="Fetches that answer 'not ready' before data"),
    offline_ticks: int = typer.Option(0, help="Ticks that report no connectivity"),
    max_retries: int | None = typer.Option(None, help="Attempts before giving up (0 = forever)"),
    interval: float | None = typer.Option(None, help="Seconds between remote load attempts"),
    store: str | None = typer.Option(None, help="Path of the local JSON store"),
    verbose: bool = typer.Option(False, help="Print effective settings"),
) -> None:
    """Run a scripted startup against an in-memory remote backend."""
    overrides: dict[str, object] = {}
    if max_retries is not None:
        overrides["max_retries"] = max_retries
    if interval is not None:
        overrides["retry_interval_s"] = interval
    if store is not None:
        overrides["local_store_path"] = store
    cfg = Settings(**overrides)
    if verbose:
        typer.echo(cfg.model_dump_json(indent=2))

    from . import app as app_module

    report = asyncio.run(
        app_module.run_demo(cfg, fail_first=fail_first, offline_ticks=offline_ticks)
    )
    status = "loaded" if report.success else "gave up"
    typer.echo(f"Remote preferences {status} after {report.attempts} attempt(s)")
    typer.echo(json.dumps(report.values, indent=2, sort_keys=True))
    if verbose:
        typer.echo(json.dumps(report.metrics, indent=2, sort_keys=True))


@app.command("encode")
def encode_value(
    value: str,
    as_type: str = typer.Option(
        "string", "--as", help="Interpret VALUE as string, bool, int or double"
    ),
) -> None:
    """Encode VALUE as a typed string pair."""
    if as_type not in DATA_TYPES:
        raise typer.BadParameter(f"expected one of {', '.join(DATA_TYPES)}", param_hint="--as")
    typer.echo(json.dumps(encode(decode(value, as_type)).to_map()))


@app.command("decode")
def decode_value(value: str, data_type: str) -> None:
    """Decode VALUE tagged with DATA_TYPE."""
    typer.echo(json.dumps(decode(value, data_type)))


if __name__ == "__main__":  # pragma: no cover
    app()
