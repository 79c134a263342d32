"""Typer application entrypoint."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.table import Table
from rich.tree import Tree

from dicom_objects.errors import LoadError
from dicom_objects.models import Finding, Study
from dicom_objects.serializers import study_to_dict
from ingest import AssemblyResult, LoadConfig, get_settings, load_config, load_study
from ingest.limits import bytes_to_human
from logging_config import configure_logging


app = typer.Typer(help="Load DICOM studies: images, structured reports, key objects and presentation states")


def _resolve_config(config_file: Optional[Path], workers: Optional[int]) -> LoadConfig:
    config = load_config(config_file) if config_file else get_settings()
    if workers is not None:
        config = LoadConfig.model_validate({**config.model_dump(), "max_workers": workers})
    return config


def _load(source: Path, config: LoadConfig) -> AssemblyResult:
    if not source.exists():
        rprint(f"[red]Source not found:[/red] {source}")
        raise typer.Exit(code=1)
    try:
        result = load_study(source, config=config)
    except LoadError as exc:
        rprint(f"[red]Load failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if result.is_empty:
        rprint(f"[yellow]No DICOM study found in {source}[/yellow]")
        raise typer.Exit(code=1)
    return result


def _print_study(study: Study) -> None:
    rprint(
        f"[bold]{study.patient_name}[/bold] ({study.patient_id or 'no id'}) "
        f"{study.study_date} {study.description} [dim]{study.study_id}[/dim]"
    )
    table = Table(title="Series")
    table.add_column("#", justify="right")
    table.add_column("Modality")
    table.add_column("Description")
    table.add_column("Body part")
    table.add_column("Images", justify="right")
    table.add_column("Overlays", justify="right")
    for series in study.series:
        overlays = sum(len(image.overlays or []) for image in series.images)
        table.add_row(
            str(series.series_number),
            series.modality,
            series.description,
            series.body_part or "",
            str(len(series.images)),
            str(overlays),
        )
    rprint(table)

    counts = Table(title="Objects")
    counts.add_column("Kind")
    counts.add_column("Count", justify="right")
    counts.add_row("Structured reports", str(len(study.reports)))
    counts.add_row("Key object selections", str(len(study.key_object_selections)))
    counts.add_row("Presentation states", str(len(study.presentation_states)))
    rprint(counts)


def _print_skipped(result: AssemblyResult) -> None:
    if not result.skipped:
        return
    table = Table(title=f"Skipped files ({len(result.skipped)})")
    table.add_column("File")
    table.add_column("Reason")
    table.add_column("Detail")
    for skip in result.skipped:
        table.add_row(skip.path.name, skip.reason.value, skip.detail or "")
    rprint(table)


@app.command()
def load(
    source: Path = typer.Argument(..., help="DICOM directory, ZIP archive or single file"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel decode workers"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON loader config"),
    as_json: bool = typer.Option(False, "--json", help="Print the study as JSON"),
    include_overlays: bool = typer.Option(False, "--include-overlays", help="Embed overlay bitmaps in JSON"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default LOG_LEVEL or INFO)"),
) -> None:
    """Load a study and summarize what was found."""

    configure_logging(log_level, stream="ext://sys.stderr" if as_json else "ext://sys.stdout")
    config = _resolve_config(config_file, workers)
    result = _load(source, config)
    study = result.require_study()

    if as_json:
        typer.echo(json.dumps(study_to_dict(study, include_overlay_data=include_overlays), indent=2))
        return

    _print_study(study)
    _print_skipped(result)
    rprint(
        f"Processed {result.total_files} file(s) in {result.elapsed:.2f}s "
        f"(file limit {bytes_to_human(config.max_file_size)})"
    )


def _add_findings(tree: Tree, findings: list[Finding]) -> None:
    for finding in findings:
        if finding.value_type == "CONTAINER":
            label = f"[bold]{finding.concept_name}[/bold]"
        else:
            unit = f" {finding.unit}" if finding.unit else ""
            label = f"{finding.concept_name}: {finding.value}{unit} [dim]{finding.value_type}[/dim]"
        branch = tree.add(label)
        if finding.children:
            _add_findings(branch, finding.children)


@app.command()
def findings(
    source: Path = typer.Argument(..., help="DICOM directory, ZIP archive or single file"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON loader config"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default LOG_LEVEL or INFO)"),
) -> None:
    """Print every structured report of a study as a tree."""

    configure_logging(log_level)
    study = _load(source, _resolve_config(config_file, None)).require_study()
    if not study.reports:
        rprint("[yellow]No structured reports in this study[/yellow]")
        return
    for report in study.reports:
        title = report.title or "Structured Report"
        flags = f"{report.completion_flag.value}/{report.verification_flag.value}"
        tree = Tree(f"[bold]{title}[/bold] [dim]{report.content_date or ''} {flags}[/dim]")
        _add_findings(tree, report.findings)
        rprint(tree)


if __name__ == "__main__":
    app()
