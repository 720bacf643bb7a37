"""
Matching Engine Command Line Interface

Provides CLI commands for running matches, inspecting stored results
and scoring local resume files without any network access.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="matchengine",
    help="Resume-to-Job Matching Engine CLI",
    add_completion=False,
)
console = Console()


def _score_style(score: int) -> str:
    if score > 75:
        return "green"
    if score >= 45:
        return "yellow"
    return "red"


def _load_seed(seed: Path):
    """
    Build an in-memory record store from a JSON fixture.

    The file maps collection names (``users``, ``user_profiles``, ``jobs``)
    to lists of documents, each carrying its own ``_id``.
    """
    from matchengine.data.database import InMemoryRecordStore

    if not seed.exists():
        console.print(f"[red]Error: Seed file not found: {seed}[/red]")
        raise typer.Exit(1)

    try:
        data: dict[str, list[dict[str, Any]]] = json.loads(seed.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: Seed file is not valid JSON: {e}[/red]")
        raise typer.Exit(1)

    store = InMemoryRecordStore()

    async def _fill() -> None:
        for collection, documents in data.items():
            for document in documents:
                key = str(document.get("_id") or "")
                if key:
                    await store.put(collection, key, document)

    asyncio.run(_fill())
    return store


def _open_store(seed: Optional[Path]):
    if seed is not None:
        return _load_seed(seed)

    from matchengine.data.database import MongoRecordStore, get_database_manager

    db_manager = get_database_manager()
    if not asyncio.run(db_manager.check_async_connection()):
        console.print("[red]Error: Could not connect to MongoDB.[/red]")
        console.print("[dim]Pass --seed to run against a JSON fixture instead.[/dim]")
        raise typer.Exit(1)
    # the ping ran under its own event loop; reconnect under the next one
    db_manager.close()
    return MongoRecordStore(db_manager)


def _print_result(result, title: str) -> None:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    style = _score_style(result.score)
    table.add_row("Score", f"[{style}]{result.score}[/{style}]")
    table.add_row("Recommendation", str(result.recommendation))
    table.add_row("Source", str(result.source))
    table.add_row("Matched Skills", ", ".join(result.matched_skills) or "-")
    table.add_row("Missing Skills", ", ".join(result.missing_skills) or "-")
    table.add_row("Summary", result.summary)
    if result.experience_match:
        table.add_row("Experience", result.experience_match)

    console.print(table)

    if result.evidence:
        console.print("\n[bold]Evidence:[/bold]")
        for snippet in result.evidence:
            console.print(f"  [dim]-[/dim] {snippet}")


@app.command()
def version():
    """Show application version."""
    from matchengine import __app_name__, __version__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from matchengine.ml.nlp.extractors import ExtractorFactory
    from matchengine.utils.config import get_settings, resolve_provider

    settings = get_settings()
    provider = resolve_provider(settings.ai)

    table = Table(title="Matching Engine Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("AI Provider", provider.provider if provider else "not configured")
    table.add_row("AI Model", provider.model if provider else "-")
    table.add_row("Blob Storage", "configured" if settings.storage.is_configured else "not configured")
    table.add_row("Resume Formats", ", ".join(ExtractorFactory.get_supported_extensions()))
    table.add_row("Time Budget", f"{settings.matching.time_budget():.1f}s")
    table.add_row("Fast Time Budget", f"{settings.matching.time_budget(fast_first=True):.1f}s")
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Create the indexes used by result listing."""
    from matchengine.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")

    db_manager = get_database_manager()

    async def _init() -> bool:
        if not await db_manager.check_async_connection():
            return False
        await db_manager.ensure_indexes()
        return True

    try:
        ok = asyncio.run(_init())
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)

    if not ok:
        console.print("[red]Error: Could not connect to MongoDB.[/red]")
        raise typer.Exit(1)

    console.print("  [green]✓[/green] Indexes created")
    console.print("\n[green]Database initialized successfully![/green]")


@app.command()
def match(
    subject_id: str = typer.Argument(..., help="Candidate user ID"),
    job_id: str = typer.Argument(..., help="Job ID"),
    fast: bool = typer.Option(False, "--fast", help="Use the shorter AI time budget"),
    seed: Optional[Path] = typer.Option(
        None, "--seed", "-s", help="JSON fixture to use instead of MongoDB"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response payload"),
):
    """Match a candidate's resume against a job."""
    from matchengine.core.exceptions import MatchEngineError
    from matchengine.services.match_service import create_match_service

    store = _open_store(seed)
    service = create_match_service(store=store)

    console.print(f"[yellow]Matching {subject_id} against job {job_id}...[/yellow]")
    try:
        response = asyncio.run(
            service.match(subject_id, {"subjectId": subject_id, "jobId": job_id, "fastFirst": fast})
        )
    except MatchEngineError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(response.to_payload()))
        return

    title = response.job_title or job_id
    if response.company_name:
        title = f"{title} at {response.company_name}"
    _print_result(response.match, f"Match: {title}")
    if response.match_id:
        console.print(f"\n[dim]Stored as {response.match_id}[/dim]")


@app.command()
def results(
    subject_id: str = typer.Argument(..., help="Candidate user ID"),
    seed: Optional[Path] = typer.Option(
        None, "--seed", "-s", help="JSON fixture to use instead of MongoDB"
    ),
):
    """List stored match results for a candidate, newest first."""
    from matchengine.services.match_service import create_match_service

    store = _open_store(seed)
    service = create_match_service(store=store)
    records = asyncio.run(service.list_results(subject_id))

    if not records:
        console.print("[yellow]No match results found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Match Results ({len(records)} total)")
    table.add_column("ID", style="dim", width=24)
    table.add_column("Job", style="cyan")
    table.add_column("Company")
    table.add_column("Score", justify="right")
    table.add_column("Source", justify="center")
    table.add_column("Created")

    for record in records:
        style = _score_style(record.fit_score)
        table.add_row(
            record.id or "",
            record.job_title,
            record.company_name,
            f"[{style}]{record.fit_score}[/{style}]",
            str(record.source),
            record.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def score_file(
    resume: Path = typer.Argument(..., help="Local PDF resume"),
    job_file: Path = typer.Argument(..., help="Job posting as JSON"),
    profile_file: Optional[Path] = typer.Option(
        None, "--profile", "-p", help="Candidate profile as JSON"
    ),
):
    """Score a local resume with the offline fallback scorer."""
    from matchengine.core.matching import get_fallback_scorer
    from matchengine.data.models import CandidateProfile, JobPosting
    from matchengine.ml.nlp.extractors import ExtractorFactory

    for path in (resume, job_file, profile_file):
        if path is not None and not path.exists():
            console.print(f"[red]Error: File not found: {path}[/red]")
            raise typer.Exit(1)

    extraction = ExtractorFactory.extract_from_bytes(resume.read_bytes(), resume.name)
    if not extraction.success:
        console.print(f"[red]Error: {extraction.error_message}[/red]")
        raise typer.Exit(1)

    console.print(
        f"  [green]✓[/green] Extracted {extraction.word_count} words "
        f"from {extraction.page_count} page(s)"
    )
    for warning in extraction.warnings:
        console.print(f"  [dim]{warning}[/dim]")

    job = JobPosting.model_validate(json.loads(job_file.read_text(encoding="utf-8")))
    profile = None
    if profile_file is not None:
        profile = CandidateProfile.model_validate(
            json.loads(profile_file.read_text(encoding="utf-8"))
        )

    result = get_fallback_scorer().score(job, extraction.text, profile)
    _print_result(result, f"Offline score: {job.title or job_file.stem}")


@app.command()
def terminal_log(
    job_title: str = typer.Option("", "--title", "-t", help="Job title"),
    job_id: str = typer.Option("", "--job", "-j", help="Job ID (seeds the timings)"),
    resume_source: str = typer.Option("user_resume", "--source", help="Resume location shown on FETCH"),
    steps: Optional[list[str]] = typer.Option(None, "--step", help="Pipeline step (repeatable)"),
    score: int = typer.Option(0, "--score", help="Fit score shown in the trace"),
):
    """Render the synthetic pipeline trace stored with match records."""
    from matchengine.core.matching import TerminalLogGenerator
    from matchengine.utils.constants import PIPELINE_STEPS

    text = TerminalLogGenerator().generate(
        resume_source=resume_source,
        job_title=job_title,
        job_id=job_id,
        steps=steps or list(PIPELINE_STEPS),
        results={"fitScore": score},
    )
    console.print(text, highlight=False)


if __name__ == "__main__":
    app()
