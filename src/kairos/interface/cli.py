"""kairos CLI: review buckets, notifications, state updates and the HTTP server."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Annotated

import typer

from kairos.application.config import resolve_config
from kairos.domain.exceptions import KairosError
from kairos.domain.knowledge import KnowledgeState

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="kairos: spaced-repetition review planner for Notion flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage kairos configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

LOG_LEVELS = {0: logging.ERROR, 1: logging.WARNING, 2: logging.INFO}


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for kairos."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.getLogger("kairos").setLevel(LOG_LEVELS.get(verbose, logging.DEBUG))


def _parse_now(value: str | None) -> datetime:
    if value is None:
        return datetime.now().astimezone()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        typer.secho(f"Invalid --now timestamp: {value}", fg="red")
        raise typer.Exit(2) from None


def _fail(e: Exception) -> None:
    typer.secho(f"Error: {e}", fg="red", err=True)
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    group: Annotated[str | None, typer.Option(help="Only this group's collections.")] = None,
    now: Annotated[
        str | None, typer.Option(help="Reference time (ISO-8601). Defaults to now.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON.")] = False,
    list_cards: Annotated[
        bool, typer.Option("--list", "-l", help="List card titles under each bucket.")
    ] = False,
):
    """Show which cards are [bold green]due[/bold green], at risk, or stuck."""
    from kairos.application.factory import build_service
    from kairos.interface.schemas import DueSetsOut

    reference = _parse_now(now)
    config = resolve_config()

    async def run():
        service = build_service(config)
        try:
            return await service.compute(group, reference)
        finally:
            await service.aclose()

    try:
        result = asyncio.run(run())
    except KairosError as e:
        _fail(e)

    if json_output:
        typer.echo(DueSetsOut.from_domain(result).model_dump_json(indent=2))
        return

    buckets = [
        ("Due today", result.due_today, "red"),
        ("Due this week", result.due_this_week, "yellow"),
        ("Never reviewed", result.never_reviewed, None),
        ("At risk", result.at_risk, "magenta"),
        ("Problematic", result.problematic, "magenta"),
    ]
    typer.echo(f"Flashcards: {result.total_flashcards}")
    for label, cards, color in buckets:
        typer.secho(f"{label}: {len(cards)}", fg=color if cards else None)
        if list_cards:
            for card in cards:
                typer.echo(f"  {card.title}  [{card.state}]")


@app.command()
def notify(
    group: Annotated[str | None, typer.Option(help="Only this group's collections.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON.")] = False,
):
    """Print the due-today notification badge and items."""
    from kairos.application.factory import build_service
    from kairos.interface.schemas import NotificationsOut

    config = resolve_config()

    async def run():
        service = build_service(config)
        try:
            return await service.due_today_notifications(group)
        finally:
            await service.aclose()

    try:
        items = asyncio.run(run())
    except KairosError as e:
        _fail(e)

    out = NotificationsOut.from_domain(items)
    if json_output:
        typer.echo(out.model_dump_json(indent=2))
        return

    typer.echo(f"Due today: {out.badge}")
    for item in out.items:
        suffix = f"  ({item.group_name})" if item.group_name else ""
        typer.echo(f"  {item.session_name}{suffix}")


@app.command()
def queue(
    group: Annotated[str | None, typer.Option(help="Only this group's collections.")] = None,
    state: Annotated[
        list[KnowledgeState] | None,
        typer.Option(help="Only cards in this state. Repeat for several."),
    ] = None,
    limit: Annotated[int, typer.Option(help="Show at most this many cards.")] = 20,
):
    """List cards for a review session, least viewed first."""
    from kairos.application.factory import build_service

    config = resolve_config()

    async def run():
        service = build_service(config)
        try:
            return await service.review_queue(group, state or None)
        finally:
            await service.aclose()

    try:
        cards = asyncio.run(run())
    except KairosError as e:
        _fail(e)

    if not cards:
        typer.secho("No cards to review.", fg="yellow")
        return
    for card in cards[:limit]:
        typer.echo(f"{card.title}  [{card.state}]  views={card.view_count}")


@app.command()
def groups():
    """List configured groups and their collections."""
    config = resolve_config()
    if not config.groups:
        typer.secho("No groups configured.", fg="yellow")
        return
    for g in config.groups:
        typer.echo(f"{g.id}  {g.name}  ({len(g.collection_ids)} collections)")


@app.command()
def review(
    card_id: Annotated[str, typer.Argument(help="Notion page id of the card.")],
    state: Annotated[
        KnowledgeState | None,
        typer.Option(help="New knowledge state."),
    ] = None,
):
    """Record a finished review: new state (optional) and last-review date."""
    from kairos.application.factory import get_card_source

    config = resolve_config()

    async def run():
        source = get_card_source(config)
        try:
            return await source.complete_review(card_id, state=state)
        finally:
            await source.aclose()

    try:
        updated = asyncio.run(run())
    except KairosError as e:
        _fail(e)

    if updated:
        typer.secho(f"Updated: {', '.join(updated)}", fg="green")
    else:
        typer.secho("Nothing to update on this page.", fg="yellow")


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run("kairos.server:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = config.model_dump(mode="json")
    if d.get("notion_token"):
        d["notion_token"] = "***"
    typer.echo(json.dumps(d, indent=2))
