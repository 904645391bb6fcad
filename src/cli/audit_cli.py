"""
Audit CLI - conduct department audits from the terminal.

Usage:
    audit departments                 # List catalog departments
    audit conduct dept-deli           # Start (or resume) an audit
    audit history                     # List saved audit sessions
    audit show <session-id>           # Results for one session

Keys during an audit:
    y / n / p      answer yes / no / partial
    < / >          previous / next question
    g N            jump to question N
    f              finish the audit
    x              leave skipped-question review
    q              save progress and quit
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import Settings, get_settings
from src.audit import (
    AuditEngine,
    AuditMode,
    AuditSession,
    Auditor,
    Department,
    FinalizeError,
    FinishResult,
    FinishStatus,
    InMemorySessionStore,
    InputChannel,
    SessionStore,
    category_breakdown,
    grade_label,
    score_band,
)
from src.catalog import CatalogError, find_department, load_catalog

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="audit",
    help="Store department audits: weighted yes/no/partial checklists",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

KEY_ALIASES = {
    "<": "left",
    ",": "left",
    ">": "right",
    ".": "right",
    "yes": "y",
    "no": "n",
    "partial": "p",
}

BAND_STYLES = {
    "excellent": "green",
    "good": "blue",
    "warning": "yellow",
    "critical": "red",
    "unknown": "dim",
}

VALUE_STYLES = {"yes": "green", "partial": "yellow", "no": "red", "skipped": "dim"}


def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB", retention=5)


def _open_store(memory: bool) -> SessionStore:
    if memory:
        return InMemorySessionStore()
    from src.db.session_store import SqlSessionStore

    return SqlSessionStore()


def _load_departments(catalog: Path | None) -> list[Department]:
    path = catalog or get_settings().catalog_path
    try:
        return load_catalog(path)
    except CatalogError as exc:
        console.print(f"[red]{exc}[/]")
        raise typer.Exit(1)


# =============================================================================
# Rendering
# =============================================================================


def _render_card(engine: AuditEngine) -> None:
    question = engine.current_question
    if question is None:
        return

    total = engine.total_questions
    header = f"[bold]{engine.department.name}[/]  {engine.cursor_index + 1} / {total}"
    if engine.mode == AuditMode.SKIPPED_REVIEW:
        header += f"  [yellow]reviewing {len(engine.skipped_indices)} skipped[/]"

    answer = engine.current_answer
    body = f"[cyan]{question.risk_category}[/]\n\n[bold]{question.text}[/]"
    if question.criteria:
        body += f"\n[dim]{question.criteria}[/]"
    pts = f"Full: {question.points_yes} pts"
    if question.allows_partial:
        pts += f"  Partial: {question.points_partial} pts"
    pts += f"  No: {question.points_no} pts"
    body += f"\n\n[dim]{pts}[/]"
    if answer is not None:
        style = VALUE_STYLES[answer.value.value]
        body += f"\n[{style}]Answered: {answer.value.value}[/]"

    console.print(Panel(body, title=header, border_style="cyan"))

    dots = []
    for i, q in enumerate(engine.sequence):
        recorded = engine.state.answers.get(q.id)
        style = VALUE_STYLES[recorded.value.value] if recorded else "dim"
        mark = "◉" if i == engine.cursor_index else ("●" if recorded else "○")
        dots.append(f"[{style}]{mark}[/]")
    console.print(" ".join(dots))
    console.print(f"[dim]Progress {engine.answered_count}/{total} ({engine.progress:.0%})[/]")


def _key_hint(engine: AuditEngine) -> str:
    question = engine.current_question
    keys = "y/n/p" if question is not None and question.allows_partial else "y/n"
    hint = f"{keys}  < >  g N"
    if engine.can_finish:
        hint += "  f=finish"
    if engine.mode == AuditMode.SKIPPED_REVIEW:
        hint += "  x=exit review"
    return hint + "  q=quit"


def _print_results(session: AuditSession, department: Department | None) -> None:
    band = score_band(session.percentage)
    style = BAND_STYLES[band]
    title = department.name if department else session.department_id
    console.print(
        Panel(
            f"[bold {style}]{session.percentage}%[/]  {grade_label(session.percentage)}\n"
            f"{session.total_points} / {session.max_points} points\n"
            f"[dim]{session.auditor_name} · {session.date}[/]",
            title=f"Results: {title}",
            border_style=style,
        )
    )

    questions = department.questions if department else ()
    for category in category_breakdown(session, questions):
        table = Table(title=f"{category.name} ({category.earned}/{category.max})", show_lines=False)
        table.add_column("Question")
        table.add_column("Answer")
        table.add_column("Points", justify="right")
        for item in category.items:
            value_style = VALUE_STYLES.get(item.value, "")
            table.add_row(item.text, f"[{value_style}]{item.value}[/]", f"{item.earned}/{item.max}")
        console.print(table)


# =============================================================================
# Audit Loop
# =============================================================================


async def _handle_finish(engine: AuditEngine, result: FinishResult) -> None:
    if result.status == FinishStatus.UNAVAILABLE:
        console.print("[yellow]Finish is available on the last question or once everything is answered.[/]")
    elif result.status == FinishStatus.CONFIRMATION_REQUIRED:
        numbers = ", ".join(str(i + 1) for i in result.skipped_indices)
        console.print(
            Panel(
                f"{len(result.skipped_indices)} question(s) unanswered: {numbers}\n"
                "Skipped questions score 0 points.\n\n"
                "[bold]r[/] review skipped   [bold]s[/] submit anyway   [bold]c[/] cancel",
                title="Unanswered questions",
                border_style="yellow",
            )
        )


async def _confirm_loop_step(engine: AuditEngine, command: str) -> None:
    if command == "r":
        engine.review_skipped()
    elif command == "s":
        try:
            await engine.submit_anyway()
        except FinalizeError as exc:
            console.print(f"[red]{exc}[/] Your answers are kept; press s to retry.")
    elif command == "c":
        engine.cancel_confirmation()
    else:
        console.print("[yellow]Choose r, s or c.[/]")


async def run_audit(department: Department, auditor: Auditor, store: SessionStore) -> str | None:
    """Interactive audit. Returns the completed session id, or None if the auditor quit."""
    channel = InputChannel()

    async with AuditEngine(department, auditor, store) as engine:
        if engine.total_questions == 0:
            console.print("[yellow]This department has no questions.[/]")
            return None
        if engine.state.session_id is not None:
            console.print(
                f"[green]Resuming your audit: {engine.answered_count}/{engine.total_questions} answered[/]"
            )

        with channel.attach(engine):
            while engine.active:
                if engine.confirming:
                    command = await asyncio.to_thread(Prompt.ask, "[yellow]r/s/c[/]")
                    await _confirm_loop_step(engine, command.strip().lower())
                    continue

                _render_card(engine)
                raw = await asyncio.to_thread(Prompt.ask, _key_hint(engine), default="")
                command = raw.strip().lower()

                if command == "q":
                    await engine.save_now()
                    console.print("[dim]Progress saved. Resume with the same command.[/]")
                    return None
                if command == "f":
                    try:
                        await _handle_finish(engine, await engine.finish())
                    except FinalizeError as exc:
                        console.print(f"[red]{exc}[/] Your answers are kept; press f to retry.")
                    continue
                if command == "x":
                    engine.exit_review()
                    continue
                if command.startswith("g"):
                    target = command[1:].strip()
                    if target.isdigit():
                        engine.jump_to(int(target) - 1)
                    continue
                if not channel.dispatch(KEY_ALIASES.get(command, command)):
                    console.print(f"[dim]Ignored: {command or '(empty)'}[/]")

    return engine.result_id


# =============================================================================
# Commands
# =============================================================================


@app.command()
def departments(
    catalog: Annotated[Path | None, typer.Option("--catalog", "-c", help="Catalog JSON file")] = None,
) -> None:
    """List departments in the question catalog."""
    table = Table(title="Departments")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Questions", justify="right")
    table.add_column("Max points", justify="right")
    for dept in _load_departments(catalog):
        table.add_row(
            dept.id, dept.name, str(len(dept.questions)), str(sum(q.points_yes for q in dept.questions))
        )
    console.print(table)


@app.command()
def conduct(
    department_id: Annotated[str, typer.Argument(help="Department to audit")],
    auditor_id: Annotated[str | None, typer.Option("--auditor-id", help="Auditor id")] = None,
    auditor_name: Annotated[str | None, typer.Option("--auditor-name", help="Auditor name")] = None,
    catalog: Annotated[Path | None, typer.Option("--catalog", "-c", help="Catalog JSON file")] = None,
    memory: Annotated[bool, typer.Option("--memory", help="Keep sessions in memory only")] = False,
) -> None:
    """
    Conduct (or resume) an audit.

    Examples:
        audit conduct dept-deli
        audit conduct dept-general --auditor-id u42 --auditor-name "Sam Lee"
    """
    settings = get_settings()
    department = find_department(_load_departments(catalog), department_id)
    if department is None:
        console.print(f"[red]Unknown department: {department_id}[/]")
        raise typer.Exit(1)

    auditor = Auditor(id=auditor_id or settings.auditor_id, name=auditor_name or settings.auditor_name)
    store = _open_store(memory)
    session_id = asyncio.run(run_audit(department, auditor, store))
    if session_id is None:
        return

    session = asyncio.run(store.get(session_id))
    if session is not None:
        _print_results(session, department)


@app.command()
def history(
    department_id: Annotated[str | None, typer.Option("--department", "-d", help="Filter by department")] = None,
    include_incomplete: Annotated[bool, typer.Option("--all", help="Include in-progress audits")] = False,
) -> None:
    """List saved audit sessions, newest first."""
    store = _open_store(memory=False)
    completed = None if include_incomplete else True
    sessions = asyncio.run(store.list_sessions(department_id=department_id, completed=completed))
    if not sessions:
        console.print("[dim]No audits yet.[/]")
        return

    table = Table(title="Audit history")
    table.add_column("Session", style="cyan")
    table.add_column("Department")
    table.add_column("Auditor")
    table.add_column("Date")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    for s in sessions:
        style = BAND_STYLES[score_band(s.percentage)]
        table.add_row(
            s.id,
            s.department_id,
            s.auditor_name,
            s.date,
            f"[{style}]{s.percentage}%[/]",
            "completed" if s.completed else "[yellow]in progress[/]",
        )
    console.print(table)


@app.command()
def show(
    session_id: Annotated[str, typer.Argument(help="Session id from `audit history`")],
    catalog: Annotated[Path | None, typer.Option("--catalog", "-c", help="Catalog JSON file")] = None,
) -> None:
    """Show results for one audit session."""
    store = _open_store(memory=False)
    session = asyncio.run(store.get(session_id))
    if session is None:
        console.print(f"[red]Session not found: {session_id}[/]")
        raise typer.Exit(1)

    department = None
    try:
        department = find_department(load_catalog(catalog or get_settings().catalog_path), session.department_id)
    except CatalogError as exc:
        logger.debug("Catalog unavailable for results view: {}", exc)
    _print_results(session, department)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
