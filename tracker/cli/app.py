from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import auth, reports, stats, timetracking
from ..config import get_config
from ..data import TrackerData, get_data
from ..logging_setup import setup_logging
from ..models import Role, Task, TaskStateError, User

app = typer.Typer(add_completion=False, help="FealtyX bug & task tracker.")
console = Console()

PRIORITY_STYLES = {"High": "red", "Medium": "yellow", "Low": "green"}
STATUS_STYLES = {
    "Open": "blue",
    "In Progress": "magenta",
    "Pending Approval": "yellow",
    "Closed": "green",
}


@app.callback()
def main() -> None:
    config = get_config()
    setup_logging(level=config.log_level, log_dir=config.log_dir)


def _data() -> TrackerData:
    return get_data()


def _fail(message: str) -> None:
    console.print(f"[bold red]{escape(message)}[/]")
    raise typer.Exit(code=1)


def _require_user(data: TrackerData) -> User:
    user = auth.get_current_user(data.storage)
    if user is None:
        _fail("Not logged in. Run 'tracker login EMAIL' first.")
    return user


def _require_task(data: TrackerData, task_id: str) -> Task:
    task = data.get_task_by_id(task_id)
    if task is None:
        _fail(f"Task {task_id} not found")
    return task


def _user_name(user_id: str) -> str:
    user = auth.get_user_by_id(user_id)
    return user.name if user else user_id


def _task_table(tasks: List[Task], title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("Assignee")
    table.add_column("Due")
    table.add_column("Logged", justify="right")
    for t in tasks:
        due = t.due_date.strftime("%Y-%m-%d") if t.due_date else "-"
        if stats.is_overdue(t):
            due = f"[bold red]{due} (overdue)[/]"
        table.add_row(
            t.id,
            escape(t.title),
            f"[{PRIORITY_STYLES[t.priority.value]}]{t.priority.value}[/]",
            f"[{STATUS_STYLES[t.status.value]}]{t.status.value}[/]",
            escape(_user_name(t.assignee)),
            due,
            timetracking.format_minutes(t.time_logged),
        )
    return table


def _run_domain(action):
    try:
        return action()
    except (PermissionError, TaskStateError, ValueError) as exc:
        _fail(str(exc))


# ---- session ----


@app.command()
def login(email: str = typer.Argument(..., help="Email of a known user.")) -> None:
    """Sign in by email (no password)."""
    data = _data()
    user = auth.authenticate_user(email.strip())
    if user is None:
        _fail("Invalid credentials")
    auth.set_current_user(data.storage, user)
    console.print(
        f"[bold green]Welcome, {escape(user.name)}[/] ({user.role.value}, {auth.dashboard_for(user)} dashboard)"
    )


@app.command("demo-login")
def demo_login(role: str = typer.Argument(..., help="Developer or Manager")) -> None:
    """Sign in as the first demo user with the given role."""
    data = _data()
    try:
        user = auth.get_demo_user(role.strip().capitalize())
    except ValueError:
        _fail(f"Unknown role: {role}")
    auth.set_current_user(data.storage, user)
    console.print(f"[bold green]Welcome, {escape(user.name)}[/] ({user.role.value})")


@app.command()
def logout() -> None:
    data = _data()
    auth.clear_current_user(data.storage)
    console.print("Signed out")


@app.command()
def whoami() -> None:
    data = _data()
    user = _require_user(data)
    console.print(f"{escape(user.name)} <{user.email}> id={user.id} role={user.role.value}")


@app.command()
def users() -> None:
    """List the user directory."""
    table = Table(title="Users")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role")
    for u in auth.MOCK_USERS:
        table.add_row(u.id, u.name, u.email, u.role.value)
    console.print(table)


# ---- tasks ----


@app.command()
def tasks(
    filter_key: str = typer.Option("all", "--filter", "-f", help="all|open|in-progress|pending|closed|high-priority"),
    sort_key: str = typer.Option("created", "--sort", "-s", help="created|priority|dueDate|title"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include tasks assigned to others."),
) -> None:
    """List tasks: developers see their own, managers see everything."""
    data = _data()
    user = _require_user(data)
    if sort_key not in stats.SORT_KEYS:
        _fail(f"Unknown sort: {sort_key} (choose from {', '.join(stats.SORT_KEYS)})")
    if show_all or user.role == Role.MANAGER:
        scoped = data.get_tasks()
        title = "All tasks"
    else:
        scoped = data.get_tasks_by_assignee(user.id)
        title = "My tasks"
    listed = stats.sort_tasks(stats.filter_tasks(scoped, filter_key), sort_key)
    if not listed:
        console.print("No tasks found")
        return
    console.print(_task_table(listed, title))


@app.command()
def show(task_id: str) -> None:
    data = _data()
    task = _require_task(data, task_id)
    lines = [
        f"[bold cyan]Status:[/] {task.status.value}",
        f"[bold cyan]Priority:[/] {task.priority.value}",
        f"[bold cyan]Assignee:[/] {escape(_user_name(task.assignee))}",
        f"[bold cyan]Created:[/] {task.created_date:%Y-%m-%d %H:%M} by {escape(_user_name(task.created_by))}",
        f"[bold cyan]Updated:[/] {task.last_updated:%Y-%m-%d %H:%M}",
        f"[bold cyan]Due:[/] {task.due_date:%Y-%m-%d}" if task.due_date else "[bold cyan]Due:[/] -",
        f"[bold cyan]Logged:[/] {timetracking.format_minutes(task.time_logged)}",
        "",
        escape(task.description or "(no description)"),
    ]
    entries = data.get_time_entries_by_task(task.id)
    if entries:
        lines.append("")
        lines.append("[bold cyan]Time entries:[/]")
        for e in entries:
            lines.append(
                f"  {e.date:%Y-%m-%d} {escape(_user_name(e.user_id))} "
                f"{timetracking.format_minutes(e.duration)} {escape(e.description)}"
            )
    console.print(Panel("\n".join(lines), title=escape(task.title), border_style="cyan"))


@app.command()
def create(
    title: str = typer.Argument(...),
    description: str = typer.Option("", "--description", "-d"),
    priority: str = typer.Option("Medium", "--priority", "-p"),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="User id; defaults to yourself."),
    due: Optional[str] = typer.Option(None, "--due", help="Due date, YYYY-MM-DD."),
) -> None:
    data = _data()
    user = _require_user(data)
    if not title.strip():
        _fail("Title is required")
    assignee_id = assignee or user.id
    if auth.get_user_by_id(assignee_id) is None:
        _fail(f"Unknown assignee: {assignee_id}")
    task = _run_domain(
        lambda: data.create_task(
            title=title,
            description=description,
            priority=priority,
            assignee=assignee_id,
            created_by=user.id,
            due_date=due,
        )
    )
    console.print(f"[bold green]Created task[/] {task.id}")


@app.command()
def edit(
    task_id: str,
    title: Optional[str] = typer.Option(None, "--title"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p"),
    status: Optional[str] = typer.Option(None, "--status"),
    assignee: Optional[str] = typer.Option(None, "--assignee"),
    due: Optional[str] = typer.Option(None, "--due"),
) -> None:
    data = _data()
    _require_user(data)
    task = _require_task(data, task_id)
    if not stats.can_edit(task):
        _fail("Closed tasks cannot be edited")
    if assignee is not None and auth.get_user_by_id(assignee) is None:
        _fail(f"Unknown assignee: {assignee}")

    updates = {
        name: value
        for name, value in (
            ("title", title),
            ("description", description),
            ("priority", priority),
            ("status", status),
            ("assignee", assignee),
            ("due_date", due),
        )
        if value is not None
    }
    if not updates:
        _fail("Nothing to update")
    _run_domain(lambda: data.update_task(task_id, **updates))
    console.print(f"[bold green]Updated task[/] {task_id}")


@app.command()
def delete(task_id: str) -> None:
    """Delete a task and its time entries."""
    data = _data()
    _require_user(data)
    task = _require_task(data, task_id)
    if not stats.can_delete(task):
        _fail("Closed tasks cannot be deleted")
    data.delete_task(task_id)
    console.print(f"Deleted task {task_id}")


@app.command()
def close(task_id: str) -> None:
    """Mark a task done; it then waits for a manager's approval."""
    data = _data()
    user = _require_user(data)
    _require_task(data, task_id)
    _run_domain(lambda: data.submit_for_approval(task_id, user))
    console.print(f"Task {task_id} is pending approval")


@app.command()
def approve(task_id: str) -> None:
    data = _data()
    user = _require_user(data)
    _require_task(data, task_id)
    _run_domain(lambda: data.approve_task(task_id, user))
    console.print(f"[bold green]Task {task_id} closed[/]")


@app.command()
def reopen(task_id: str) -> None:
    data = _data()
    user = _require_user(data)
    _require_task(data, task_id)
    _run_domain(lambda: data.reopen_task(task_id, user))
    console.print(f"Task {task_id} reopened")


# ---- time tracking ----


@app.command("log-time")
def log_time(
    task_id: str,
    minutes: int = typer.Argument(..., help="Minutes spent."),
    description: str = typer.Option("Manual entry", "--description", "-d"),
) -> None:
    data = _data()
    user = _require_user(data)
    task = _require_task(data, task_id)
    if not stats.can_edit(task):
        _fail("Cannot track time on a closed task")
    _run_domain(
        lambda: data.add_time_entry(
            task_id=task_id, user_id=user.id, duration=minutes, description=description
        )
    )
    console.print(f"Logged {timetracking.format_minutes(minutes)} on task {task_id}")


@app.command("timer-start")
def timer_start(
    task_id: str,
    description: str = typer.Option("", "--description", "-d"),
) -> None:
    data = _data()
    user = _require_user(data)
    task = _require_task(data, task_id)
    if not stats.can_edit(task):
        _fail("Cannot track time on a closed task")
    running = timetracking.get_active_timer(data.storage)
    if running is not None:
        _fail(f"A timer is already running on task {running.task_id}")
    timetracking.start_timer(data.storage, task_id=task_id, user_id=user.id, description=description)
    console.print(f"Timer started on task {task_id}")


@app.command("timer-stop")
def timer_stop() -> None:
    data = _data()
    user = _require_user(data)
    running = timetracking.get_active_timer(data.storage)
    if running is None:
        _fail("No timer is running")
    if running.user_id != user.id:
        _fail(f"The running timer belongs to user {running.user_id}")
    entry = timetracking.stop_timer(data.storage, data)
    console.print(f"Logged {timetracking.format_minutes(entry.duration)} on task {entry.task_id}")


@app.command()
def entries() -> None:
    """Your time entries with today's and this week's totals."""
    data = _data()
    user = _require_user(data)
    mine = data.get_time_entries_by_user(user.id)
    table = Table(title="My time entries")
    table.add_column("Date")
    table.add_column("Task")
    table.add_column("Duration", justify="right")
    table.add_column("Description")
    for e in mine:
        task = data.get_task_by_id(e.task_id)
        table.add_row(
            f"{e.date:%Y-%m-%d}",
            escape(task.title if task else "Unknown Task"),
            timetracking.format_minutes(e.duration),
            escape(e.description),
        )
    console.print(table)
    console.print(f"Today: {timetracking.format_minutes(timetracking.total_time_today(mine))}")
    console.print(f"This week: {timetracking.format_minutes(timetracking.total_time_this_week(mine))}")


# ---- dashboards & reports ----


def _scope(user: User, show_all: bool) -> Optional[str]:
    if show_all or user.role == Role.MANAGER:
        return None
    return user.id


@app.command("stats")
def stats_cmd(show_all: bool = typer.Option(False, "--all", "-a")) -> None:
    """Dashboard counters."""
    data = _data()
    user = _require_user(data)
    s = data.get_dashboard_stats(_scope(user, show_all))
    table = Table(title="Dashboard")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total tasks", str(s.total_tasks))
    table.add_row("Open", str(s.open_tasks))
    table.add_row("In progress", str(s.in_progress_tasks))
    table.add_row("Pending approval", str(s.pending_approval_tasks))
    table.add_row("Closed", str(s.closed_tasks))
    table.add_row("Time logged", timetracking.format_minutes(s.total_time_logged))
    for name, count in s.tasks_by_priority.items():
        table.add_row(f"{name} priority", str(count))
    console.print(table)


@app.command()
def trend(show_all: bool = typer.Option(False, "--all", "-a")) -> None:
    """Concurrent active tasks per day."""
    data = _data()
    user = _require_user(data)
    points = data.get_trend_data(_scope(user, show_all))
    peak = max((p.concurrent_tasks for p in points), default=0) or 1
    for p in points:
        bar = "#" * round(20 * p.concurrent_tasks / peak)
        console.print(f"{p.date} {p.concurrent_tasks:>3} {bar}")


@app.command()
def report() -> None:
    """Team-wide time and status report."""
    data = _data()
    _require_user(data)
    all_tasks = data.get_tasks()
    all_entries = data.get_all_time_entries()

    summary = reports.report_summary(data.get_dashboard_stats())
    console.print(
        Panel(
            f"Tasks: {summary['total_tasks']}  Closed: {summary['closed_tasks']}  "
            f"Hours: {summary['total_hours']}h  Avg/task: {summary['avg_hours_per_task']}h",
            title="Summary",
        )
    )

    sections = [
        ("Weekly time", reports.weekly_time_data(all_entries)),
        ("Daily time", reports.daily_time_data(all_entries)),
        ("Tasks by status", reports.task_status_data(all_tasks)),
        ("Top tasks by time", reports.top_tasks_by_time(all_entries, all_tasks)),
        ("Recent entries", reports.recent_time_entries(all_entries, all_tasks)),
    ]
    for title, df in sections:
        table = Table(title=title)
        for col in df.columns:
            table.add_column(str(col))
        for row in df.itertuples(index=False):
            table.add_row(*(escape(str(v)) for v in row))
        console.print(table)
