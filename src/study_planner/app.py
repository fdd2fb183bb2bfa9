"""Interactive CLI application."""
import asyncio
import sys
from functools import partial
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.prompt import Prompt
from rich.table import Table

from study_planner.allocator import DistributionMode, SessionCountPlan, allocate
from study_planner.dashboard import get_minutes_by_subject, get_sequence_progress, get_study_stats
from study_planner.db import DEFAULT_DB_PATH, init_db
from study_planner.errors import ImportFormatError, InvalidRatingError, PomodoroConfigError, StudyLogError
from study_planner.flashcards import add_flashcard, get_due_cards, record_flashcard_result
from study_planner.importer import import_file
from study_planner.models import PomodoroSettings, PomodoroStatus, PomodoroTask, StudyLogEntry
from study_planner.plans import build_sequence_from_allocation, save_schedule_plan
from study_planner.pomodoro import PomodoroEngine
from study_planner.seed import is_seeded, seed_all
from study_planner.study import (
    advance_sequence, delete_active_sequence, delete_saved_sequence, list_saved_sequences,
    load_pomodoro_settings, load_saved_sequence, load_sequence_state, replace_active_sequence,
    reset_sequence_progress, save_pomodoro_settings, save_sequence_as, get_streak,
)
from study_planner.study_log import (
    append_study_log, delete_study_log, load_study_logs, new_log_entry, update_study_log,
)
from study_planner.subjects import (
    add_subject, add_topic, current_revision_topic, delete_subject, get_topic, load_subjects,
    revision_steps, set_revision_progress, toggle_topic_completed,
)
from study_planner.timer import PomodoroTimer

console = Console()


class SessionExitRequested(Exception):
    """Raised when the user types 'q' or 'menu' inside an interactive session."""


def session_prompt(prompt: str, **kwargs) -> str:
    value = Prompt.ask(prompt, **kwargs)
    if value.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return value


def session_int_prompt(prompt: str, choices: Optional[list[str]] = None, default: Optional[int] = None) -> int:
    kwargs = {}
    if choices is not None:
        kwargs["choices"] = choices
    if default is not None:
        kwargs["default"] = str(default)
    return int(session_prompt(prompt, **kwargs))


def _clock(seconds: int) -> str:
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def show_welcome():
    console.print(Panel(
        "[bold]Study Planner[/bold]\n[dim]Pomodoro, study sequences and spaced repetition[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("pomodoro", "Focus session on a topic"),
        ("log", "Log study time by hand"),
        ("history", "Edit or delete study logs"),
        ("sequence", "Study sequence progress"),
        ("plan", "Split a weekly budget across subjects"),
        ("subjects", "Manage subjects and topics"),
        ("revision", "Revision cycle over completed topics"),
        ("flashcards", "Review or add flashcards"),
        ("settings", "Pomodoro task chain and breaks"),
        ("dashboard", "Study statistics"),
        ("import", "Import a JSON/YAML plan"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def pick_subject(db_path: str, prompt: str = "Subject", default_id: Optional[str] = None):
    subjects = load_subjects(db_path)
    if not subjects:
        console.print("[yellow]No subjects yet. Add one with 'subjects' or 'import'.[/yellow]")
        return None
    default = 1
    for i, s in enumerate(subjects, 1):
        marker = " [dim](next in sequence)[/dim]" if s.id == default_id else ""
        console.print(f"  [cyan]{i}[/cyan]) [{s.color}]{s.name}[/{s.color}]{marker}")
        if s.id == default_id:
            default = i
    choice = session_int_prompt(prompt, choices=[str(i) for i in range(1, len(subjects) + 1)], default=default)
    return subjects[choice - 1]


def pick_topic(subject):
    if not subject.topics:
        console.print(f"[yellow]{subject.name} has no topics yet.[/yellow]")
        return None
    for i, t in enumerate(subject.topics, 1):
        done = " [green]✓[/green]" if t.is_completed else ""
        console.print(f"  [cyan]{i}[/cyan]) {t.name}{done}")
    choice = session_int_prompt("Topic", choices=[str(i) for i in range(1, len(subject.topics) + 1)])
    return subject.topics[choice - 1]


# --- Pomodoro ---


def build_engine(db_path: str) -> PomodoroEngine:
    def log_sink(entry: StudyLogEntry) -> None:
        append_study_log(db_path, entry)
        console.print(f"[green]Logged {entry.duration} min.[/green]")

    return PomodoroEngine(
        load_pomodoro_settings(db_path),
        topic_lookup=partial(get_topic, db_path),
        sequence_query=partial(load_sequence_state, db_path),
        log_sink=log_sink,
    )


def _phase_label(engine: PomodoroEngine) -> str:
    state = engine.state
    if state.status == PomodoroStatus.FOCUS:
        task = engine.current_task
        return f"[bold red]Focus[/bold red] {task.name if task else ''}"
    if state.status == PomodoroStatus.LONG_BREAK:
        return "[bold green]Long break[/bold green]"
    return "[bold green]Short break[/bold green]"


def run_timer_phase(engine: PomodoroEngine, timer: PomodoroTimer) -> None:
    """Show a countdown until the engine needs input. Ctrl+C pauses."""
    columns = (TextColumn("{task.description}"), BarColumn(), TextColumn("{task.fields[clock]}"))
    with Progress(*columns, console=console, transient=True) as progress:
        current = {"key": None, "task": None, "total": 0}

        def on_tick(state):
            if state.key != current["key"]:
                if current["task"] is not None:
                    progress.remove_task(current["task"])
                current.update(key=state.key, total=max(state.time_remaining, 1))
                current["task"] = progress.add_task(_phase_label(engine), total=current["total"], clock="")
            progress.update(
                current["task"],
                completed=current["total"] - state.time_remaining,
                clock=_clock(state.time_remaining),
            )

        on_tick(engine.state)
        timer.on_tick = on_tick
        try:
            asyncio.run(timer.run_phase())
        except KeyboardInterrupt:
            engine.pause()
        finally:
            timer.on_tick = None


def run_pomodoro_session(engine: PomodoroEngine, timer: PomodoroTimer) -> None:
    while True:
        state = engine.state
        if engine.awaiting_confirmation:
            pending = engine.pending
            topic_name = pending.topic.name if pending.topic else "no topic"
            console.print(Panel(
                f"Focus segment finished: [bold]{pending.minutes} min[/bold] on {topic_name}",
                border_style="green",
            ))
            choice = session_prompt("Log it and continue?", choices=["log", "skip", "end"], default="log")
            if choice == "log":
                engine.continue_to_break()
            elif choice == "skip":
                engine.skip_to_break()
            else:
                engine.end_without_register()
                return
        elif state.status == PomodoroStatus.PAUSED:
            console.print(f"[yellow]Paused[/yellow] with {_clock(state.time_remaining)} left")
            choice = session_prompt("Action", choices=["resume", "advance", "end"], default="resume")
            if choice == "end":
                engine.end_without_register()
                console.print("[dim]Session ended without logging.[/dim]")
                return
            engine.resume()
            if choice == "advance":
                engine.advance_cycle()
        elif state.status == PomodoroStatus.IDLE:
            return
        else:
            run_timer_phase(engine, timer)


def cmd_pomodoro(db_path: str, engine: PomodoroEngine, timer: PomodoroTimer, item_type: str = "topic", topic=None):
    engine.update_settings(load_pomodoro_settings(db_path))
    if topic is None:
        sequence = load_sequence_state(db_path)
        subject = pick_subject(db_path, default_id=sequence.current_subject_id)
        if subject is None:
            return
        topic = pick_topic(subject)
        if topic is None:
            return
    minutes = session_prompt("Focus minutes (Enter for the task chain)", default="")
    custom = int(minutes) * 60 if minutes.strip() else None
    try:
        engine.start_for_item(topic.id, item_type, custom_duration=custom)
    except PomodoroConfigError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[dim]Ctrl+C pauses the timer.[/dim]")
    run_pomodoro_session(engine, timer)
    console.print(f"[dim]Pomodoros completed today: {engine.state.pomodoros_completed_today}[/dim]")


def cmd_settings(db_path: str, engine: PomodoroEngine):
    settings = load_pomodoro_settings(db_path)
    tasks = []
    for task in settings.tasks:
        minutes = session_int_prompt(f"{task.name} minutes (0 removes it)", default=task.duration // 60)
        if minutes > 0:
            tasks.append(PomodoroTask(id=task.id, name=task.name, duration=minutes * 60))
    while True:
        name = session_prompt("Add a task (Enter to finish)", default="")
        if not name.strip():
            break
        minutes = session_int_prompt(f"{name} minutes", default=10)
        tasks.append(PomodoroTask(id=f"task-{len(tasks) + 1}-{name.lower()}", name=name, duration=minutes * 60))
    new = PomodoroSettings(
        tasks=tuple(tasks),
        short_break_duration=session_int_prompt("Short break minutes", default=settings.short_break_duration // 60) * 60,
        long_break_duration=session_int_prompt("Long break minutes", default=settings.long_break_duration // 60) * 60,
        cycles_until_long_break=session_int_prompt("Cycles until long break", default=settings.cycles_until_long_break),
    )
    try:
        save_pomodoro_settings(db_path, new)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return
    engine.update_settings(new)
    if not new.tasks:
        console.print("[yellow]No focus tasks: sessions will need a custom duration.[/yellow]")
    console.print("[green]Settings saved.[/green]")


# --- Logs ---


def cmd_log(db_path: str):
    sequence = load_sequence_state(db_path)
    subject = pick_subject(db_path, default_id=sequence.current_subject_id)
    if subject is None:
        return
    topic = pick_topic(subject)
    if topic is None:
        return
    duration = session_int_prompt("Minutes studied")
    details = {}
    pages = session_prompt("Pages read (start-end, Enter to skip)", default="")
    if "-" in pages:
        start, end = pages.split("-", 1)
        details.update(start_page=int(start), end_page=int(end))
    questions = session_prompt("Questions correct/total (Enter to skip)", default="")
    if "/" in questions:
        correct, total = questions.split("/", 1)
        details.update(questions_correct=int(correct), questions_total=int(total))
    entry = new_log_entry(
        subject.id, topic.id, duration,
        sequence_item_index=sequence.attributable_index(subject.id),
        **details,
    )
    try:
        state = append_study_log(db_path, entry)
    except StudyLogError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Logged {duration} min on {topic.name}.[/green]")
    if state.sequence is not None and state.index != sequence.index:
        console.print("[cyan]Sequence item complete, moving on.[/cyan]")


def cmd_history(db_path: str):
    logs = load_study_logs(db_path, limit=15)
    if not logs:
        console.print("[yellow]No study logs yet.[/yellow]")
        return
    names = {s.id: s.name for s in load_subjects(db_path)}
    table = Table(title="Recent Study Logs")
    table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Subject", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Source")
    for i, log in enumerate(logs, 1):
        table.add_row(str(i), log.date[:16].replace("T", " "), names.get(log.subject_id, "?"), str(log.duration), log.source)
    console.print(table)

    action = session_prompt("Action", choices=["edit", "delete", "back"], default="back")
    if action == "back":
        return
    index = session_int_prompt("Log #", choices=[str(i) for i in range(1, len(logs) + 1)])
    log = logs[index - 1]
    if action == "delete":
        delete_study_log(db_path, log.id)
        console.print("[green]Log deleted.[/green]")
        return
    duration = session_int_prompt("Minutes", default=log.duration)
    try:
        update_study_log(db_path, log.id, duration=duration)
    except StudyLogError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Log updated.[/green]")


# --- Sequence and plans ---


def show_sequence(db_path: str) -> bool:
    state = load_sequence_state(db_path)
    if state.sequence is None:
        console.print("[yellow]No active study sequence. Build one with 'plan' or 'import'.[/yellow]")
        return False
    subjects = {s.id: s for s in load_subjects(db_path)}
    table = Table(title=state.sequence.name)
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Studied", justify="right")
    table.add_column("Status")
    for i, item in enumerate(state.sequence.items):
        subject = subjects.get(item.subject_id)
        goal = subject.study_duration if subject else 0
        if i < state.index:
            status = "[green]Done[/green]"
        elif i == state.index:
            status = "[bold cyan]Current[/bold cyan]"
        else:
            status = ""
        table.add_row(str(i + 1), subject.name if subject else "?", f"{item.total_time_studied}/{goal} min", status)
    console.print(table)
    if state.is_complete:
        console.print("[green]Sequence complete![/green]")
    return True


def cmd_sequence(db_path: str):
    has_sequence = show_sequence(db_path)
    choices = ["next", "reset", "save", "load", "forget", "clear", "back"] if has_sequence else ["load", "forget", "back"]
    action = session_prompt("Action", choices=choices, default="back")
    if action == "next":
        advance_sequence(db_path)
        show_sequence(db_path)
    elif action == "reset":
        reset_sequence_progress(db_path)
        console.print("[green]Progress reset.[/green]")
    elif action == "save":
        name = session_prompt("Save as")
        save_sequence_as(db_path, name, load_sequence_state(db_path).sequence)
        console.print(f"[green]Saved '{name}'.[/green]")
    elif action == "clear":
        delete_active_sequence(db_path)
        console.print("[dim]Active sequence cleared.[/dim]")
    elif action in ("load", "forget"):
        saved = list_saved_sequences(db_path)
        if not saved:
            console.print("[yellow]No saved sequences.[/yellow]")
            return
        for i, seq in enumerate(saved, 1):
            console.print(f"  [cyan]{i}[/cyan]) {seq.name} ({len(seq)} items)")
        index = session_int_prompt("Sequence", choices=[str(i) for i in range(1, len(saved) + 1)])
        if action == "load":
            load_saved_sequence(db_path, saved[index - 1].id)
            show_sequence(db_path)
        else:
            delete_saved_sequence(db_path, saved[index - 1].id)
            console.print("[dim]Saved sequence deleted.[/dim]")


def cmd_plan(db_path: str):
    subjects = load_subjects(db_path)
    if not subjects:
        console.print("[yellow]No subjects yet. Add one with 'subjects' or 'import'.[/yellow]")
        return
    hours = float(session_prompt("Weekly study hours", default="10"))
    budget = hours * 60
    session_minutes = session_int_prompt("Session length in minutes (0 for none)", default=50) or None
    mode = session_prompt("Mode", choices=[m.value for m in DistributionMode], default="automatic")

    weights = None
    assignments = None
    if mode == DistributionMode.MANUAL.value:
        weights = {s.id: float(session_prompt(f"{s.name} multiplier (0.1-2.0)", default=str(s.weight))) for s in subjects}
    elif mode == DistributionMode.SESSION_COUNT_MANUAL.value:
        if not session_minutes:
            console.print("[red]Session-count mode needs a session length.[/red]")
            return
        counts = SessionCountPlan(budget, session_minutes)
        for s in subjects:
            wanted = session_int_prompt(f"{s.name} sessions (max {counts.max_for(s.id)})", default=0)
            counts.assign(s.id, wanted)
        assignments = counts.assignments

    try:
        allocation = allocate(budget, subjects, mode, session_minutes=session_minutes, weights=weights, assignments=assignments)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        return

    table = Table(title=f"Weekly Plan ({hours:g} h, {mode})")
    table.add_column("Subject", style="cyan")
    table.add_column(allocation.unit.capitalize(), justify="right")
    for s in subjects:
        table.add_row(s.name, f"{allocation.shares.get(s.id, 0):g}")
    table.add_row("[bold]Total[/bold]", f"[bold]{allocation.distributed_total:g}[/bold] / {allocation.budget:g}")
    console.print(table)
    for warning in allocation.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    name = session_prompt("Save plan as (Enter to skip)", default="")
    if name.strip():
        save_schedule_plan(db_path, name, allocation, round(budget), session_minutes)
        console.print(f"[green]Saved plan '{name}'.[/green]")
    if session_minutes and session_prompt("Replace the active sequence with this plan?", choices=["y", "n"], default="n") == "y":
        sequence = build_sequence_from_allocation(name.strip() or "Weekly plan", allocation, [s.id for s in subjects], session_minutes)
        replace_active_sequence(db_path, sequence)
        show_sequence(db_path)


# --- Subjects and revision ---


def cmd_subjects(db_path: str):
    subjects = load_subjects(db_path)
    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Level")
    table.add_column("Session", justify="right")
    table.add_column("Topics", justify="right")
    for s in subjects:
        done = sum(1 for t in s.topics if t.is_completed)
        table.add_row(f"[{s.color}]{s.name}[/{s.color}]", s.level.value, f"{s.study_duration} min", f"{done}/{len(s.topics)}")
    console.print(table)

    action = session_prompt("Action", choices=["add", "topic", "done", "delete", "back"], default="back")
    if action == "add":
        name = session_prompt("Name")
        duration = session_int_prompt("Minutes per session", default=60)
        level = session_prompt("Knowledge level", choices=["beginner", "intermediate", "advanced"], default="intermediate")
        add_subject(db_path, name, study_duration=duration, knowledge_level=level)
        console.print(f"[green]Added {name}.[/green]")
    elif action == "topic":
        subject = pick_subject(db_path)
        if subject:
            name = session_prompt("Topic name")
            add_topic(db_path, subject.id, name)
            console.print(f"[green]Added topic {name}.[/green]")
    elif action == "done":
        subject = pick_subject(db_path)
        topic = pick_topic(subject) if subject else None
        if topic:
            updated = toggle_topic_completed(db_path, topic.id)
            state = "completed" if updated.is_completed else "not completed"
            console.print(f"[green]{topic.name} marked {state}.[/green]")
    elif action == "delete":
        subject = pick_subject(db_path)
        if subject and session_prompt(f"Delete {subject.name} and its topics?", choices=["y", "n"], default="n") == "y":
            delete_subject(db_path, subject.id)
            console.print(f"[dim]Deleted {subject.name}.[/dim]")


def cmd_revision(db_path: str, engine: PomodoroEngine, timer: PomodoroTimer):
    subjects = [s for s in load_subjects(db_path) if revision_steps(s)]
    if not subjects:
        console.print("[yellow]Complete some topics first; revision cycles over completed topics.[/yellow]")
        return
    table = Table(title="Revision")
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Progress", justify="right")
    table.add_column("Next topic")
    for i, s in enumerate(subjects, 1):
        topic = current_revision_topic(s)
        table.add_row(str(i), s.name, f"{s.revision_progress}/{len(revision_steps(s))}", topic.name if topic else "[green]Done[/green]")
    console.print(table)

    index = session_int_prompt("Subject", choices=[str(i) for i in range(1, len(subjects) + 1)])
    subject = subjects[index - 1]
    topic = current_revision_topic(subject)
    if topic is None:
        if session_prompt("Cycle finished. Start over?", choices=["y", "n"], default="n") == "y":
            set_revision_progress(db_path, subject.id, 0)
        return
    action = session_prompt(f"Revise {topic.name}", choices=["focus", "done", "back"], default="focus")
    if action == "focus":
        cmd_pomodoro(db_path, engine, timer, item_type="revision", topic=topic)
    if action in ("focus", "done"):
        set_revision_progress(db_path, subject.id, subject.revision_progress + 1)


# --- Flashcards ---


def run_flashcard_session(db_path: str, cards: list) -> int:
    if not cards:
        console.print("[yellow]No flashcards due right now![/yellow]")
        return 0
    console.print(f"\n[bold]Flashcard Session[/bold]: {len(cards)} cards\n")
    reviewed = 0
    for i, card in enumerate(cards, 1):
        console.print(Panel(card.question, title=f"Card {i}/{len(cards)}", border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal answer[/dim]", default="")
        console.print(Panel(card.answer, border_style="green"))
        rating = session_int_prompt("Rate yourself (1=again, 2=hard, 3=good, 4=easy)", choices=["1", "2", "3", "4"])
        try:
            updated = record_flashcard_result(db_path, card.id, rating)
        except InvalidRatingError as e:
            console.print(f"[red]{e}[/red]")
            continue
        reviewed += 1
        console.print(f"[dim]Next review: {updated.next_review:%Y-%m-%d}[/dim]\n")
    return reviewed


def cmd_flashcards(db_path: str):
    action = session_prompt("Flashcards", choices=["review", "add"], default="review")
    if action == "add":
        question = session_prompt("Question")
        answer = session_prompt("Answer")
        add_flashcard(db_path, question, answer)
        console.print("[green]Card added; it is due now.[/green]")
        return
    run_flashcard_session(db_path, get_due_cards(db_path, limit=15))


# --- Dashboard and import ---


def cmd_dashboard(db_path: str):
    stats = get_study_stats(db_path)
    console.print(Panel(
        f"Total: [bold]{stats['total_minutes']}[/bold] min  |  Last 7 days: [bold]{stats['week_minutes']}[/bold] min  |  "
        f"Streak: [bold]{stats['streak']}[/bold] days",
        title="Study Dashboard", border_style="blue",
    ))

    by_subject = get_minutes_by_subject(db_path)
    if by_subject:
        peak = max(row["minutes"] for row in by_subject) or 1
        table = Table(title="Time by Subject")
        table.add_column("Subject", style="cyan")
        table.add_column("Minutes", justify="right")
        table.add_column("")
        for row in by_subject:
            filled = int(row["minutes"] / peak * 20)
            table.add_row(row["name"], str(row["minutes"]), f"[{row['color']}]{'█' * filled}{'░' * (20 - filled)}[/{row['color']}]")
        console.print(table)

    sequence = get_sequence_progress(db_path)
    if sequence["name"]:
        console.print(f"\n  Sequence [bold]{sequence['name']}[/bold]: {sequence['completed']}/{sequence['total']} ({sequence['percent']}%)")
    console.print(
        f"  Topics: [bold]{stats['topics_completed']}/{stats['topics_total']}[/bold]  |  "
        f"Logs: [bold]{stats['sessions_logged']}[/bold] ({stats['pomodoro_sessions']} pomodoro)  |  "
        f"Cards due: [bold]{stats['due_cards']}[/bold]  |  Retention: [bold]{stats['retention']}%[/bold]"
    )


def cmd_import(db_path: str):
    file_path = session_prompt("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    try:
        result = import_file(db_path, file_path)
    except ImportFormatError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(
        f"[green]Imported {result['filename']}: {result['subjects']} subjects, "
        f"{result['topics']} topics, {result['sequence_items']} sequence items[/green]"
    )


def setup_logging(level: str = "WARNING") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level, format="<level>{level: <8}</level> | {name}:{function} - {message}")


def main(db_path: str = DEFAULT_DB_PATH):
    setup_logging()
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()
    engine = build_engine(db_path)
    timer = PomodoroTimer(engine)
    if get_streak(db_path):
        console.print(f"[dim]Current streak: {get_streak(db_path)} days[/dim]")

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="pomodoro").strip().lower()
        try:
            if choice == "pomodoro":
                cmd_pomodoro(db_path, engine, timer)
            elif choice == "log":
                cmd_log(db_path)
            elif choice == "history":
                cmd_history(db_path)
            elif choice == "sequence":
                cmd_sequence(db_path)
            elif choice == "plan":
                cmd_plan(db_path)
            elif choice == "subjects":
                cmd_subjects(db_path)
            elif choice == "revision":
                cmd_revision(db_path, engine, timer)
            elif choice == "flashcards":
                cmd_flashcards(db_path)
            elif choice == "settings":
                cmd_settings(db_path, engine)
            elif choice == "dashboard":
                cmd_dashboard(db_path)
            elif choice == "import":
                cmd_import(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Happy studying![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception(f"Command '{choice}' failed")
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
