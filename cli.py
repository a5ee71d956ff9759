"""
Command Line Interface for TaskBoard
====================================

Terminal client for the TaskBoard API.

Usage:
------
    # Create an account (the token is kept for later commands)
    python cli.py register --firstname Ada --lastname Lovelace --email ada@example.com

    # Log in / out
    python cli.py login --email ada@example.com
    python cli.py logout

    # Work with tasks
    python cli.py add --title "Buy milk" --description "2%" --due 2024-01-01
    python cli.py list --filter in-progress
    python cli.py update <task_id> --status completed
    python cli.py delete <task_id>          # asks first; --yes skips the prompt

CLI Design Principles:
---------------------
1. Sensible defaults (talks to the local API out of the box)
2. Task commands refuse to run without a stored token
3. Exit codes for scripting
"""

import argparse
import getpass
import json
import logging
import sys
from typing import Optional

import httpx

from client.api_client import TaskBoardClient
from client.board import FILTER_ALL, NoticeLevel, TaskBoard, is_overdue, parse_filter
from client.session import SessionStore
from config import get_settings
from exceptions import AuthError, TaskBoardError
from models import Task, TaskPriority, TaskStatus


# ANSI colors for terminal output
class Colors:
    """ANSI color codes for pretty terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


PRIORITY_COLORS = {
    TaskPriority.LOW: Colors.GREEN,
    TaskPriority.MEDIUM: Colors.YELLOW,
    TaskPriority.HIGH: Colors.RED,
}

STATUS_COLORS = {
    TaskStatus.PENDING: Colors.YELLOW,
    TaskStatus.IN_PROGRESS: Colors.BLUE,
    TaskStatus.COMPLETED: Colors.GREEN,
}

AUTH_COMMANDS = {"register", "login", "logout"}


def colorize(text: str, color: str) -> str:
    """Add color to text if terminal supports it."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.ENDC}"
    return text


def print_notice(level: NoticeLevel, message: str) -> None:
    """Notifier used by the task board."""
    if level == NoticeLevel.ERROR:
        print(colorize(f"✗ {message}", Colors.RED))
    else:
        print(colorize(f"✓ {message}", Colors.GREEN))


def format_task(task: Task) -> str:
    """One-line rendering of a task."""
    status = colorize(f"[{task.status.value:^11}]", STATUS_COLORS[task.status])
    priority = colorize(f"{task.priority.value:<6}", PRIORITY_COLORS[task.priority])
    done = "x" if task.completed else " "
    due = task.due_date.isoformat()
    if is_overdue(task):
        due = colorize(f"Overdue: {due}", Colors.RED)
    line = f"[{done}] {status} {priority} {due}  {task.title}  ({task.id})"
    if task.description:
        line += f"\n      {task.description}"
    return line


def task_document(task: Task) -> dict:
    """JSON output for a task, with the derived overdue flag."""
    document = task.to_document()
    document["overdue"] = is_overdue(task)
    return document


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; anything but y/yes declines."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser.

    This defines all CLI options and their help text.
    """
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description="Manage your TaskBoard tasks from the terminal",
        epilog="Example: python cli.py list --filter in-progress",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument("--api-url", type=str, help="API base URL (overrides config)")
    parser.add_argument("--session-file", type=str, help="Where the token is kept (overrides config)")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output with debug info")

    commands = parser.add_subparsers(dest="command", required=True)

    register = commands.add_parser("register", help="Create an account")
    register.add_argument("--firstname", required=True)
    register.add_argument("--lastname", required=True)
    register.add_argument("--email", required=True)
    register.add_argument("--password", help="Prompted for when omitted")

    login = commands.add_parser("login", help="Log in and remember the token")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted")

    commands.add_parser("logout", help="Forget the stored token")
    commands.add_parser("whoami", help="Show the logged-in user")

    list_cmd = commands.add_parser("list", help="List tasks")
    list_cmd.add_argument(
        "--filter", "-f",
        default=FILTER_ALL,
        type=_filter_arg,
        help="all, completed (done flag) or a status: pending, in-progress"
    )

    show = commands.add_parser("show", help="Show one task")
    show.add_argument("task_id")

    add = commands.add_parser("add", help="Create a task")
    add.add_argument("--title", required=True)
    add.add_argument("--description", default="")
    add.add_argument("--due", required=True, help="Due date, YYYY-MM-DD")
    add.add_argument("--status", choices=[s.value for s in TaskStatus])
    add.add_argument("--priority", choices=[p.value for p in TaskPriority])

    update = commands.add_parser("update", help="Change fields of a task")
    update.add_argument("task_id")
    update.add_argument("--title")
    update.add_argument("--description")
    update.add_argument("--due", help="Due date, YYYY-MM-DD")
    update.add_argument("--status", choices=[s.value for s in TaskStatus])
    update.add_argument("--priority", choices=[p.value for p in TaskPriority])
    done = update.add_mutually_exclusive_group()
    done.add_argument("--done", dest="completed", action="store_const", const=True)
    done.add_argument("--not-done", dest="completed", action="store_const", const=False)

    delete = commands.add_parser("delete", help="Delete a task")
    delete.add_argument("task_id")
    delete.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    return parser


def _filter_arg(value: str) -> str:
    try:
        return parse_filter(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def setup_logging_for_cli(verbose: bool, quiet: bool) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
    )


def _task_fields(parsed_args: argparse.Namespace) -> dict:
    """Collect the task options that were actually given."""
    fields = {
        "title": parsed_args.title,
        "description": parsed_args.description,
        "dueDate": parsed_args.due,
        "status": parsed_args.status,
        "priority": parsed_args.priority,
        "completed": getattr(parsed_args, "completed", None),
    }
    return {key: value for key, value in fields.items() if value is not None}


def _emit(parsed_args: argparse.Namespace, payload, text: str) -> None:
    if parsed_args.json:
        print(json.dumps(payload, indent=2))
    elif text and not parsed_args.quiet:
        print(text)


def run_command(
    parsed_args: argparse.Namespace,
    client: TaskBoardClient,
    session: SessionStore
) -> int:
    """Execute one parsed command. Returns the exit code."""
    command = parsed_args.command

    if command == "register":
        password = parsed_args.password or getpass.getpass("Password: ")
        client.register(parsed_args.firstname, parsed_args.lastname, parsed_args.email, password)
        _emit(parsed_args, {"registered": True}, colorize("✓ Registration successful", Colors.GREEN))
        return 0

    if command == "login":
        password = parsed_args.password or getpass.getpass("Password: ")
        client.login(parsed_args.email, password)
        _emit(parsed_args, {"logged_in": True}, colorize("✓ Login successful", Colors.GREEN))
        return 0

    if command == "logout":
        session.logout()
        _emit(parsed_args, {"logged_in": False}, "Logged out")
        return 0

    if not session.is_authenticated:
        print(colorize("Not logged in. Run 'login' or 'register' first.", Colors.YELLOW))
        return 1

    notify = (lambda level, message: None) if parsed_args.json else print_notice
    board = TaskBoard(client, notify=notify)

    if command == "whoami":
        user = client.me()
        _emit(
            parsed_args,
            user.to_document(),
            f"{user.firstname} {user.lastname} <{user.email}>"
        )
        return 0

    if command == "show":
        task = client.fetch_task(parsed_args.task_id)
        _emit(parsed_args, task_document(task), format_task(task))
        return 0

    if command == "list":
        if not board.load():
            return 1
        board.set_filter(parsed_args.filter)
        visible = board.visible()
        text = "\n".join(format_task(t) for t in visible) or colorize("No tasks found", Colors.CYAN)
        _emit(parsed_args, [task_document(t) for t in visible], text)
        return 0

    if command == "add":
        task = board.add(_task_fields(parsed_args))
        if task is None:
            return 1
        _emit(parsed_args, task_document(task), format_task(task))
        return 0

    if command == "update":
        task = board.edit(parsed_args.task_id, _task_fields(parsed_args))
        if task is None:
            return 1
        _emit(parsed_args, task_document(task), format_task(task))
        return 0

    if command == "delete":
        if not parsed_args.yes and not confirm(
            f"Delete task {parsed_args.task_id}? This action cannot be undone."
        ):
            _emit(parsed_args, {"deleted": None}, "Delete cancelled")
            return 1
        if not board.remove(parsed_args.task_id):
            return 1
        _emit(parsed_args, {"deleted": parsed_args.task_id}, "")
        return 0

    raise ValueError(f"Unknown command: {command}")


def main(args: Optional[list[str]] = None, http: Optional[httpx.Client] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)
        http: Preconfigured httpx client (uses --api-url / config if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    setup_logging_for_cli(parsed_args.verbose, parsed_args.quiet)

    settings = get_settings()
    session = SessionStore(parsed_args.session_file or settings.session_file)
    session.load()

    client = TaskBoardClient(
        session,
        base_url=parsed_args.api_url or settings.api_base_url,
        http=http
    )

    try:
        return run_command(parsed_args, client, session)

    except TaskBoardError as e:
        if isinstance(e, AuthError) and parsed_args.command not in AUTH_COMMANDS:
            # The API no longer accepts the stored token
            session.logout()
        if parsed_args.json:
            print(json.dumps({"error": e.to_dict()}, indent=2))
            return 1
        print(colorize(f"\n❌ Error: {e.message}", Colors.RED))
        if parsed_args.verbose and e.details:
            print(colorize(f"   Details: {e.details}", Colors.YELLOW))
        return 1

    except KeyboardInterrupt:
        print(colorize("\n\n⚠️  Interrupted by user", Colors.YELLOW))
        return 130

    finally:
        if http is None:
            client.close()


if __name__ == "__main__":
    sys.exit(main())
