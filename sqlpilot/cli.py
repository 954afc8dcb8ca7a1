"""Command-line entry point for the query assistant.

Usage:
    # Ask in natural language (knowledge sync, probe, schema learn, generate, run, summarize)
    sqlpilot ask "오늘 매출 얼마야?"

    # Run query text or a saved query as-is
    sqlpilot run "SELECT TOP 5 * FROM parts"
    sqlpilot run --history 3

    # Connection and knowledge state
    sqlpilot status

    # Saved queries
    sqlpilot history list
    sqlpilot history save "오늘 매출" "SELECT 1"
    sqlpilot history rename 3 "어제 매출"
    sqlpilot history delete 3

    # Knowledge and schema
    sqlpilot knowledge show | set FILE | sync [--url URL] | publish URL [FILE]
    sqlpilot schema show | learn | set FILE

    # Backup
    sqlpilot export backup.json
    sqlpilot import backup.json

Environment Variables:
    See sqlpilot.config.settings.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, List, Optional

from sqlpilot._logging import configure_logging, get_logger
from sqlpilot._serialization import from_json, ms_to_iso, to_json
from sqlpilot.config.settings import Settings
from sqlpilot.errors import SqlPilotError, describe_failure
from sqlpilot.orchestration.orchestrator import QueryOrchestrator
from sqlpilot.orchestration.types import QueryOutcome
from sqlpilot.orchestration.wiring import create_orchestrator
from sqlpilot.services.reconciler import MalformedReference

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _print_outcome(outcome: QueryOutcome) -> int:
    print(f"-- {outcome.request}" if outcome.request else "-- query")
    print(outcome.query)
    if outcome.superseded:
        print("(superseded)")
        return EXIT_FAILED
    if outcome.error:
        print(f"Error: {outcome.error}", file=sys.stderr)
        return EXIT_FAILED
    print(to_json(outcome.rows, indent=2))
    if outcome.summary:
        print()
        print(outcome.summary)
    return EXIT_OK


async def _cmd_ask(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    await orchestrator.startup()
    return _print_outcome(await orchestrator.submit(args.request))


async def _cmd_run(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    if args.history is not None:
        try:
            outcome = await orchestrator.replay_history(args.history)
        except KeyError:
            print(f"No saved query with id {args.history}", file=sys.stderr)
            return EXIT_FAILED
    elif args.query:
        outcome = await orchestrator.replay(args.query)
    else:
        print("Give query text or --history ID", file=sys.stderr)
        return EXIT_USAGE
    return _print_outcome(outcome)


async def _cmd_status(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    knowledge = await orchestrator.sync_knowledge()
    await orchestrator.reload_schema()
    snapshot = await orchestrator.reconnect()

    print(f"status:    {snapshot.status.value}")
    if snapshot.store_name:
        print(f"database:  {snapshot.store_name}")
    if snapshot.diagnostic:
        print(f"detail:    {snapshot.diagnostic}")
    print(f"knowledge: {knowledge.source.value} ({len(knowledge.text)} chars)")
    schema = orchestrator.schema or ""
    print(f"schema:    {schema.count(chr(10))} tables" if schema else "schema:    (not learned)")
    if orchestrator.schema_diagnostic:
        print(f"           {orchestrator.schema_diagnostic}")
    return EXIT_OK if snapshot.is_online else EXIT_FAILED


async def _cmd_history(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    if args.history_command == "list":
        for entry in await orchestrator.list_queries():
            print(f"{entry.id:>5}  {ms_to_iso(entry.timestamp)}  {entry.name}")
            print(f"       {entry.query}")
        return EXIT_OK
    if args.history_command == "save":
        entry_id = await orchestrator.save_query(args.name, args.query)
        print(f"Saved as #{entry_id}")
        return EXIT_OK
    if args.history_command == "rename":
        try:
            entry = await orchestrator.rename_query(args.id, args.name, args.query)
        except KeyError:
            print(f"No saved query with id {args.id}", file=sys.stderr)
            return EXIT_FAILED
        print(f"Updated #{entry.id}: {entry.name}")
        return EXIT_OK
    if args.history_command == "delete":
        if not await orchestrator.delete_query(args.id):
            print(f"No saved query with id {args.id}", file=sys.stderr)
            return EXIT_FAILED
        print(f"Deleted #{args.id}")
        return EXIT_OK
    return EXIT_USAGE


async def _cmd_knowledge(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    if args.knowledge_command == "show":
        print(await orchestrator.reload_knowledge() or "")
        return EXIT_OK
    if args.knowledge_command == "set":
        text = await orchestrator.save_knowledge(_read_text(args.file))
        print(f"Knowledge saved ({len(text or '')} chars)")
        return EXIT_OK
    if args.knowledge_command == "sync":
        result = await orchestrator.sync_knowledge(args.url)
        print(f"Knowledge loaded from {result.source.value} ({len(result.text)} chars)")
        return EXIT_OK
    if args.knowledge_command == "publish":
        text = _read_text(args.file) if args.file else (await orchestrator.reload_knowledge() or "")
        try:
            edit_url = await orchestrator.publish_knowledge(args.url, text)
        except MalformedReference as exc:
            print(f"Cannot publish: {exc}", file=sys.stderr)
            return EXIT_FAILED
        print("Knowledge saved locally. Paste it into the repository editor:")
        print(edit_url)
        return EXIT_OK
    return EXIT_USAGE


async def _cmd_schema(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    if args.schema_command == "show":
        print(await orchestrator.reload_schema() or "(no schema learned)")
        return EXIT_OK
    if args.schema_command == "learn":
        snapshot = await orchestrator.reconnect()
        if not snapshot.is_online:
            print(f"Offline: {snapshot.diagnostic}", file=sys.stderr)
            return EXIT_FAILED
        if orchestrator.schema_diagnostic:
            print(orchestrator.schema_diagnostic, file=sys.stderr)
            return EXIT_FAILED
        print(orchestrator.schema or "(no tables found)")
        return EXIT_OK
    if args.schema_command == "set":
        await orchestrator.save_schema(_read_text(args.file))
        print("Schema saved")
        return EXIT_OK
    return EXIT_USAGE


async def _cmd_export(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    document = to_json(await orchestrator.export_backup(), indent=2)
    if args.file and args.file != "-":
        Path(args.file).write_text(document, encoding="utf-8")
        print(f"Exported to {args.file}")
    else:
        print(document)
    return EXIT_OK


async def _cmd_import(orchestrator: QueryOrchestrator, args: argparse.Namespace) -> int:
    try:
        payload = from_json(_read_text(args.file))
    except ValueError as exc:
        print(f"Invalid backup file. {exc}", file=sys.stderr)
        return EXIT_FAILED
    await orchestrator.import_backup(payload)
    print("Backup restored")
    return EXIT_OK


COMMANDS = {
    "ask": _cmd_ask,
    "run": _cmd_run,
    "status": _cmd_status,
    "history": _cmd_history,
    "knowledge": _cmd_knowledge,
    "schema": _cmd_schema,
    "export": _cmd_export,
    "import": _cmd_import,
}


async def run_command(
    args: argparse.Namespace,
    settings: Settings,
    **transports: Any,
) -> int:
    """Wire an orchestrator, run one command, close the store.

    Extra keyword arguments are passed to create_orchestrator (HTTP transports).
    """
    try:
        orchestrator = await create_orchestrator(settings, **transports)
    except SqlPilotError as exc:
        print(describe_failure(exc), file=sys.stderr)
        return EXIT_FAILED

    try:
        # Caches are read up front so every command starts from the stored state.
        await orchestrator.reload_knowledge()
        await orchestrator.reload_schema()
        return await COMMANDS[args.command](orchestrator, args)
    except SqlPilotError as exc:
        get_logger().error("command_failed", command=args.command, error=exc.message)
        print(describe_failure(exc), file=sys.stderr)
        return EXIT_FAILED
    except OSError as exc:
        print(f"Cannot access {exc.filename or args.command}: {exc.strerror or exc}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        await orchestrator.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlpilot",
        description="Ask your point-of-sale database questions in plain language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    sqlpilot ask "오늘 매출 얼마야?"
    sqlpilot history list
    sqlpilot export backup.json
        """,
    )
    parser.add_argument("--db", type=str, default=None, help="Local store path (default: SQLPILOT_DB)")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    commands = parser.add_subparsers(dest="command", required=True)

    ask = commands.add_parser("ask", help="Generate and run a query from a natural-language request")
    ask.add_argument("request")

    run = commands.add_parser("run", help="Run query text or a saved query as-is")
    run.add_argument("query", nargs="?")
    run.add_argument("--history", type=int, default=None, metavar="ID")

    commands.add_parser("status", help="Probe the store and show knowledge/schema state")

    history = commands.add_parser("history", help="Manage saved queries")
    history_commands = history.add_subparsers(dest="history_command", required=True)
    history_commands.add_parser("list")
    save = history_commands.add_parser("save")
    save.add_argument("name")
    save.add_argument("query")
    rename = history_commands.add_parser("rename")
    rename.add_argument("id", type=int)
    rename.add_argument("name")
    rename.add_argument("--query", default=None)
    delete = history_commands.add_parser("delete")
    delete.add_argument("id", type=int)

    knowledge = commands.add_parser("knowledge", help="Show, edit, sync or publish custom knowledge")
    knowledge_commands = knowledge.add_subparsers(dest="knowledge_command", required=True)
    knowledge_commands.add_parser("show")
    knowledge_set = knowledge_commands.add_parser("set")
    knowledge_set.add_argument("file", help="Text file, or - for stdin")
    sync = knowledge_commands.add_parser("sync")
    sync.add_argument("--url", default=None)
    publish = knowledge_commands.add_parser("publish")
    publish.add_argument("url", help="Repository file URL (github.com/.../blob/...)")
    publish.add_argument("file", nargs="?", default=None)

    schema = commands.add_parser("schema", help="Show, learn or hand-edit the schema descriptor")
    schema_commands = schema.add_subparsers(dest="schema_command", required=True)
    schema_commands.add_parser("show")
    schema_commands.add_parser("learn")
    schema_set = schema_commands.add_parser("set")
    schema_set.add_argument("file", help="Text file, or - for stdin")

    export = commands.add_parser("export", help="Write a JSON backup")
    export.add_argument("file", nargs="?", default=None)

    restore = commands.add_parser("import", help="Restore a JSON backup")
    restore.add_argument("file")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.log_level, json_output=args.json_logs)

    settings = Settings.from_env()
    if args.db:
        settings.db_path = Path(args.db).expanduser().resolve()

    return asyncio.run(run_command(args, settings))


if __name__ == "__main__":
    sys.exit(main())
