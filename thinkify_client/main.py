#!/usr/bin/env python3
"""
Thinkify CLI - Main Entry Point

Usage:
    thinkify login                      # Sign in
    thinkify register --role student    # Create an account
    thinkify dashboard                  # Teacher dashboard
    thinkify assignments                # Assignments for your role
    thinkify polls                      # Polls addressed to you
    thinkify --help                     # Show help
"""

import argparse
import json
import sys
from typing import Callable, Dict, Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from thinkify.core.roles import UserRole
from thinkify_client.api_client import ApiError, ThinkifyApi
from thinkify_client.config import ClientConfig
from thinkify_client.guards import ROUTES, RouteGuard
from thinkify_client.session import AuthSession, Severity, SessionStore

console = Console()

SEVERITY_STYLES = {
    Severity.SUCCESS: "green",
    Severity.INFO: "cyan",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="thinkify",
        description="Thinkify - assignments and polls from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--server-url", help="API base URL (default from config / THINKIFY_API_URL)")
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")

    subparsers = parser.add_subparsers(dest="command")

    login_parser = subparsers.add_parser("login", help="Sign in")
    login_parser.add_argument("--email", "-e")
    login_parser.add_argument("--password", "-p")

    register_parser = subparsers.add_parser("register", help="Create an account")
    register_parser.add_argument("--role", choices=[UserRole.STUDENT.value, UserRole.TEACHER.value],
                                 default=UserRole.STUDENT.value)
    register_parser.add_argument("--full-name", required=True)
    register_parser.add_argument("--email", required=True)
    register_parser.add_argument("--password")
    register_parser.add_argument("--student-id")
    register_parser.add_argument("--teacher-id")
    register_parser.add_argument("--department")

    subparsers.add_parser("logout", help="Sign out and forget the stored session")
    subparsers.add_parser("status", help="Show who is signed in")
    subparsers.add_parser("dashboard", help="Teacher dashboard")

    assignments_parser = subparsers.add_parser("assignments", help="List assignments")
    assignments_parser.add_argument("--status", help="Teacher only: filter by status")

    grade_parser = subparsers.add_parser("grade", help="Grade a student's submission")
    grade_parser.add_argument("assignment_id")
    grade_parser.add_argument("student_id")
    grade_parser.add_argument("marks", type=float)
    grade_parser.add_argument("--feedback")

    polls_parser = subparsers.add_parser("polls", help="List polls")
    polls_parser.add_argument("--active", action="store_true", help="Only polls still open")

    vote_parser = subparsers.add_parser("vote", help="Vote on a poll")
    vote_parser.add_argument("poll_id")
    vote_parser.add_argument("options", type=int, nargs="+", help="Option indexes, starting at 0")

    results_parser = subparsers.add_parser("results", help="Show a poll's results")
    results_parser.add_argument("poll_id")

    submit_parser = subparsers.add_parser("submit", help="Submit an assignment")
    submit_parser.add_argument("assignment_id")
    submit_parser.add_argument("content")

    subparsers.add_parser("students", help="Teacher only: list students")

    return parser


def show_alert(session: AuthSession) -> None:
    if session.alert:
        style = SEVERITY_STYLES[session.alert.severity]
        console.print(f"[{style}]{session.alert.message}[/{style}]")
        session.alert = None


def print_json(data) -> None:
    console.print_json(json.dumps(data, default=str))


# ========== Commands ==========

def cmd_login(session: AuthSession, args) -> int:
    email = args.email or Prompt.ask("Email")
    password = args.password or Prompt.ask("Password", password=True)
    ok = session.login(email, password)
    show_alert(session)
    return 0 if ok else 1


def cmd_register(session: AuthSession, args) -> int:
    payload = {
        "full_name": args.full_name,
        "email": args.email,
        "password": args.password or Prompt.ask("Password", password=True),
        "role": args.role,
        "student_id": args.student_id,
        "teacher_id": args.teacher_id,
        "department": args.department,
    }
    ok = session.register({k: v for k, v in payload.items() if v is not None})
    show_alert(session)
    return 0 if ok else 1


def cmd_logout(session: AuthSession, args) -> int:
    session.logout()
    show_alert(session)
    return 0


def cmd_status(session: AuthSession, args) -> int:
    if not session.is_authenticated:
        console.print("[yellow]Not signed in.[/yellow] Run [cyan]thinkify login[/cyan].")
        return 1
    user = session.user or {}
    console.print(Panel(
        f"[bold]{user.get('full_name', '-')}[/bold]\n"
        f"Email: {user.get('email', '-')}\n"
        f"Role: {user.get('role', '-')}\n"
        f"Permissions: {', '.join(session.permissions) or '-'}",
        title="Signed in",
    ))
    return 0


def cmd_dashboard(session: AuthSession, args) -> int:
    data = session.api.teacher_dashboard()
    if args.json:
        print_json(data)
        return 0
    stats = data["stats"]
    table = Table(title=f"Dashboard - {data['teacher']['name']}")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    for key, value in stats.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)
    return 0


def _assignments_table(items, student: bool) -> Table:
    table = Table(title="Assignments")
    for column in ("ID", "Title", "Subject", "Deadline", "Status", "Submissions" if not student else "Can submit"):
        table.add_column(column)
    for item in items:
        table.add_row(
            item["id"], item["title"], item["subject"], str(item["deadline"]), item["status"],
            str(item["can_submit"]) if student else str(item["submission_count"]),
        )
    return table


def cmd_assignments(session: AuthSession, args) -> int:
    student = session.role == UserRole.STUDENT
    items = session.api.student_assignments() if student else session.api.teacher_assignments(args.status)
    if args.json:
        print_json(items)
    else:
        console.print(_assignments_table(items, student))
    return 0


def cmd_grade(session: AuthSession, args) -> int:
    data = session.api.grade(args.assignment_id, args.student_id, args.marks, args.feedback)
    console.print(f"[green]Graded:[/green] {data['marks']} marks")
    return 0


def cmd_polls(session: AuthSession, args) -> int:
    if session.role == UserRole.TEACHER and not args.active:
        items = [{"poll": p, "has_voted": False, "can_vote": False} for p in session.api.teacher_polls()]
    else:
        items = session.api.polls(active_only=args.active)
    if args.json:
        print_json(items)
        return 0
    table = Table(title="Polls")
    for column in ("ID", "Title", "Options", "Deadline", "Status", "Voted"):
        table.add_column(column)
    for item in items:
        poll = item["poll"]
        options = ", ".join(f"{i}:{o['text']}" for i, o in enumerate(poll["options"]))
        table.add_row(poll["id"], poll["title"], options, str(poll["deadline"]), poll["status"],
                      "yes" if item["has_voted"] else "no")
    console.print(table)
    return 0


def print_results(results) -> None:
    """Tally lines, or the server's reason for withholding them"""
    if "message" in results:
        console.print(results["message"])
        return
    for option in results["options"]:
        console.print(f"  {option['text']}: {option['votes']} ({option['percentage']}%)")
    console.print(f"  {results['total_votes']} votes from {results['unique_voters']} ballots")


def cmd_vote(session: AuthSession, args) -> int:
    results = session.api.vote(args.poll_id, args.options)
    console.print("[green]Vote recorded.[/green]")
    print_results(results)
    return 0


def cmd_results(session: AuthSession, args) -> int:
    results = session.api.poll_results(args.poll_id)
    if args.json:
        print_json(results)
        return 0
    print_results(results)
    return 0


def cmd_submit(session: AuthSession, args) -> int:
    data = session.api.submit(args.assignment_id, args.content)
    late = " (late)" if data["is_late"] else ""
    console.print(f"[green]Submitted{late}.[/green]")
    return 0


def cmd_students(session: AuthSession, args) -> int:
    students = session.api.students()
    if args.json:
        print_json(students)
        return 0
    table = Table(title="Students")
    for column in ("Name", "Email", "Student ID"):
        table.add_column(column)
    for s in students:
        table.add_row(s["full_name"], s["email"], s.get("student_id") or "-")
    console.print(table)
    return 0


# command -> (handler, guarded route path or None for public commands)
COMMANDS: Dict[str, Tuple[Callable[[AuthSession, argparse.Namespace], int], Optional[str]]] = {
    "login": (cmd_login, None),
    "register": (cmd_register, None),
    "logout": (cmd_logout, None),
    "status": (cmd_status, None),
    "dashboard": (cmd_dashboard, "/teacher/dashboard"),
    "assignments": (cmd_assignments, None),
    "grade": (cmd_grade, "/teacher/grade"),
    "polls": (cmd_polls, "/polls"),
    "vote": (cmd_vote, "/polls/vote"),
    "results": (cmd_results, "/polls"),
    "submit": (cmd_submit, "/student/submit"),
    "students": (cmd_students, "/teacher/students"),
}


def route_for(command: str, session: AuthSession) -> Optional[str]:
    """Guarded path for a command; assignments depends on the signed-in role"""
    if command == "assignments":
        return "/student/assignments" if session.role == UserRole.STUDENT else "/teacher/assignments"
    return COMMANDS[command][1]


def run(args, config: ClientConfig) -> int:
    api = ThinkifyApi(config.api_base_url, config.timeout, token_provider=lambda: session.token)
    session = AuthSession(SessionStore.from_config(config), api)

    try:
        verify = config.verify_session and args.command not in ("login", "register")
        session.load(verify=verify)
        show_alert(session)

        handler, _ = COMMANDS[args.command]
        path = route_for(args.command, session)
        if path is not None:
            result = RouteGuard(session).check(ROUTES[path])
            if not result.allowed:
                console.print(f"[red]Not allowed here.[/red] Redirected to [cyan]{result.redirect}[/cyan]")
                return 1

        return handler(session, args)
    except ApiError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1
    finally:
        api.close()


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    config = ClientConfig.load_default()
    if args.server_url:
        config.api_base_url = args.server_url

    sys.exit(run(args, config))


if __name__ == "__main__":
    main()
