"""
DJ Planner command line.

    djplanner map EXTRACTED.json [--planning F] [--music F] [--timeline F] [--append] [--out F]
    djplanner chat --event ID
    djplanner notes --event ID FILE
    djplanner upload --event ID FILE [--type pdf|email|note]
    djplanner serve [--host H] [--port P]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from .api_client import DOCUMENT_TYPES, PlannerAPIClient
from .chat.session import ClientChatSession
from .chat.state import ChatState
from .form_filler import (
    fill_music_ideas_form,
    fill_planning_form,
    fill_timeline_form,
    filling_summary,
    form_filling_confidence,
)
from .exceptions import ConfigurationError
from .ingestion import IngestionOrchestrator, IngestionResult
from .logging_config import get_logger, set_debug_mode
from .models import ExtractedData, MusicIdeasFormData, PlanningFormData, TimelineFormData

logger = get_logger(__name__)
console = Console()

_NOTICE_STYLES = {"success": "green", "warning": "yellow", "error": "red"}


def _read_json(path: Optional[str]) -> dict:
    if not path:
        return {}
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _print_notice(level: str, message: str) -> None:
    console.print(Text(message, style=_NOTICE_STYLES.get(level, "white")))


# ----------------------------------------------------------------------
# map
# ----------------------------------------------------------------------

def cmd_map(args: argparse.Namespace) -> int:
    """Fill forms from an extraction file without talking to a backend."""
    extracted = ExtractedData.model_validate(_read_json(args.extracted))

    planning = PlanningFormData.model_validate(_read_json(args.planning))
    music = MusicIdeasFormData.model_validate(_read_json(args.music))
    timeline = TimelineFormData.model_validate(_read_json(args.timeline))

    filled_planning = fill_planning_form(planning, extracted, args.append)
    filled_music = fill_music_ideas_form(music, extracted, args.append)
    filled_timeline = fill_timeline_form(timeline, extracted, args.append)

    table = Table(title=f"Form filling (confidence {form_filling_confidence(extracted):.0f})")
    table.add_column("Form", style="cyan")
    table.add_column("Filled", justify="right")
    table.add_column("Fields")
    for name, before, after in (
        ("Planning", planning, filled_planning),
        ("Music ideas", music, filled_music),
        ("Timeline", timeline, filled_timeline),
    ):
        summary = filling_summary(before, after)
        table.add_row(
            name,
            f"{summary['fields_filled']}/{summary['total_fields']}",
            ", ".join(summary["filled_fields"]) or "-",
        )
    console.print(table)

    result = {
        "planning_data": filled_planning.to_wire(),
        "music_ideas": filled_music.model_dump(),
        "timeline_data": filled_timeline.model_dump(),
    }
    if args.out:
        Path(args.out).write_text(json.dumps(result, indent=2), encoding="utf-8")
        console.print(f"[green]✓ Wrote {args.out}[/green]")
    return 0


# ----------------------------------------------------------------------
# chat
# ----------------------------------------------------------------------

class _TranscriptPrinter:
    """Prints messages the console has not shown yet."""

    def __init__(self):
        self._shown = set()

    def __call__(self, state: ChatState) -> None:
        for message in state.messages:
            if message.id in self._shown:
                continue
            self._shown.add(message.id)
            speaker, style = ("DJ", "cyan") if message.is_bot else ("You", "white")
            console.print(Text(f"{speaker}: {message.text}", style=style))


async def _run_chat(args: argparse.Namespace) -> int:
    async with PlannerAPIClient(base_url=args.api_url, user_id=args.user_id) as api:
        session = ClientChatSession(
            api,
            args.event,
            on_completed=lambda: console.print("[bold green]Chat complete![/bold green]"),
            on_upload_requested=lambda: console.print(
                "[yellow]Upload your timeline with: djplanner upload --event "
                f"{args.event} FILE[/yellow]"
            ),
            open_url=lambda url: console.print(f"[blue]Calendar: {url}[/blue]"),
            on_notify=_print_notice,
            on_messages=_TranscriptPrinter(),
        )

        state = await session.load()
        if not state.messages:
            return 1

        while not session.state.is_completed:
            step_data = session.state.current_step_data
            options: List[str] = list(step_data.options or []) if step_data else []
            hint = f" [{' / '.join(options)}]" if options else ""
            answer = Prompt.ask(f"Answer{hint} (q to quit)").strip()
            if answer.lower() == "q":
                return 0
            if not answer:
                continue
            await session.select_option(answer)

        if Prompt.ask("Fill the planning forms now?", choices=["y", "n"], default="y") == "y":
            await session.fill_forms()
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    console.print(Panel("Wedding planning chat", border_style="magenta"))
    return asyncio.run(_run_chat(args))


# ----------------------------------------------------------------------
# notes / upload
# ----------------------------------------------------------------------

def _report(result: IngestionResult) -> int:
    if result.parse_error:
        return 1
    for domain in result.saved:
        console.print(f"[green]✓ {domain.value}[/green]")
    for domain, message in result.failed.items():
        console.print(f"[red]✗ {domain.value}: {message}[/red]")
    return 0 if result.ok else 1


async def _run_ingestion(args: argparse.Namespace, upload: bool) -> int:
    path = Path(args.file)
    async with PlannerAPIClient(base_url=args.api_url, user_id=args.user_id) as api:
        orchestrator = IngestionOrchestrator(api, args.event, on_notify=_print_notice)
        if upload:
            result = await orchestrator.ingest_document(path.read_bytes(), path.name, args.type)
        else:
            result = await orchestrator.ingest_notes(path.read_text(encoding="utf-8"))
    return _report(result)


def cmd_notes(args: argparse.Namespace) -> int:
    return asyncio.run(_run_ingestion(args, upload=False))


def cmd_upload(args: argparse.Namespace) -> int:
    return asyncio.run(_run_ingestion(args, upload=True))


# ----------------------------------------------------------------------
# serve
# ----------------------------------------------------------------------

def cmd_serve(args: argparse.Namespace) -> int:
    from servers.app import run

    run(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="djplanner", description="Wedding DJ planning tools")
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    map_parser = subparsers.add_parser("map", help="Fill forms from an extraction file")
    map_parser.add_argument("extracted", help="ExtractedData JSON file")
    map_parser.add_argument("--planning", help="Current planning form JSON")
    map_parser.add_argument("--music", help="Current music ideas JSON")
    map_parser.add_argument("--timeline", help="Current timeline JSON")
    map_parser.add_argument("--append", action="store_true", help="Add to songs and timeline rows")
    map_parser.add_argument("--out", help="Write the filled forms here")
    map_parser.set_defaults(func=cmd_map)

    def add_backend_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--event", type=int, required=True, help="Event id")
        sub.add_argument("--api-url", default=None, help="Backend URL (default DJPLANNER_API_URL)")
        sub.add_argument("--user-id", type=int, default=None, help="Sent as X-User-Id")

    chat_parser = subparsers.add_parser("chat", help="Answer the planning chat")
    add_backend_args(chat_parser)
    chat_parser.set_defaults(func=cmd_chat)

    notes_parser = subparsers.add_parser("notes", help="Parse a notes file into the forms")
    add_backend_args(notes_parser)
    notes_parser.add_argument("file")
    notes_parser.set_defaults(func=cmd_notes)

    upload_parser = subparsers.add_parser("upload", help="Upload a document into the forms")
    add_backend_args(upload_parser)
    upload_parser.add_argument("file")
    upload_parser.add_argument("--type", choices=DOCUMENT_TYPES, default="pdf")
    upload_parser.set_defaults(func=cmd_upload)

    serve_parser = subparsers.add_parser("serve", help="Run the planning backend")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        set_debug_mode(True)
    try:
        return args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        return 130
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e.message}")
        console.print(f"[red]Configuration error: {e.message}[/red]")
        return 2
    except (OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
