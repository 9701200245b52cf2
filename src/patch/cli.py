from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml

from src.instrumentation.model import InstrumentationError, InstrumentedApplication

from .config import PatcherConfig
from .workload import WorkloadError, instrument_manifest, manifest_is_instrumented

app = typer.Typer(help="Inject auto-instrumentation into workload pod templates.")

_OUTPUT_FORMATS = ("yaml", "patch")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


@app.command()
def instrument(
    manifest: Path = typer.Option(
        ...,
        "--manifest",
        "-m",
        help="Workload manifest (Deployment, StatefulSet, DaemonSet, Job, CronJob...).",
    ),
    application: Path = typer.Option(
        ...,
        "--app",
        "-a",
        help="InstrumentedApplication YAML describing the detected languages.",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Where to write the result (defaults to stdout).",
    ),
    output_format: str = typer.Option(
        "yaml",
        "--format",
        "-f",
        help="Output the patched manifest ('yaml') or an RFC 6902 JSON patch ('patch').",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Patch even if the pod template already carries instrumentation.",
    ),
) -> None:
    if output_format not in _OUTPUT_FORMATS:
        raise typer.BadParameter(f"--format must be one of {', '.join(_OUTPUT_FORMATS)}")

    manifest_obj = _load_yaml(manifest, "manifest")
    app_obj = _load_application(application)
    try:
        config = PatcherConfig.from_env()
        result = instrument_manifest(manifest_obj, app_obj, config=config, force=force)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    for outcome in result.report.outcomes:
        line = f"{outcome.container_name} [{outcome.language.value}]: {outcome.status.value}"
        if outcome.reason:
            line = f"{line} ({outcome.reason})"
        typer.echo(line, err=True)

    if output_format == "patch":
        rendered = json.dumps(result.patch, indent=2)
    else:
        rendered = yaml.safe_dump(result.manifest, sort_keys=False)

    if out is None:
        typer.echo(rendered)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(rendered, encoding="utf-8")
    typer.echo(f"Wrote {output_format} for {len(result.report.patched)} container(s) to {out.resolve()}")


@app.command()
def check(
    manifest: Path = typer.Option(..., "--manifest", "-m", help="Workload manifest to inspect."),
    application: Path = typer.Option(
        ..., "--app", "-a", help="InstrumentedApplication YAML describing the detected languages."
    ),
) -> None:
    manifest_obj = _load_yaml(manifest, "manifest")
    app_obj = _load_application(application)
    try:
        instrumented = manifest_is_instrumented(manifest_obj, app_obj)
    except WorkloadError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if instrumented:
        typer.echo("instrumented")
        return
    typer.echo("not instrumented")
    raise typer.Exit(code=1)


def _load_application(path: Path) -> InstrumentedApplication:
    data = _load_yaml(path, "instrumented application")
    try:
        return InstrumentedApplication.from_dict(data)
    except InstrumentationError as exc:
        raise typer.BadParameter(f"{path}: {exc}") from exc


def _load_yaml(path: Path, kind: str) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"{kind.title()} file not found: {path}") from exc
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as exc:
        raise typer.BadParameter(f"{kind.title()} file is not valid YAML: {exc}") from exc
    if not documents:
        raise typer.BadParameter(f"{kind.title()} file is empty: {path}")
    first = documents[0]
    if not isinstance(first, dict):
        raise typer.BadParameter(f"{kind.title()} must be a mapping")
    return first


if __name__ == "__main__":  # pragma: no cover
    app()
