"""cs2sync CLI

Commands:
- init-db: create tables
- sync-file: persist an exported GC inventory snapshot (JSON)
- backfill-defs: create item_def rows from inventory items
- prices-update: refresh Skinport prices into history + current tables
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from cs2sync.core.config import settings
from cs2sync.core.database import AsyncSessionLocal, engine, init_db
from cs2sync.services.casket import SnapshotSession
from cs2sync.services.inventory import sync_inventory
from cs2sync.services.item_defs import backfill_item_defs
from cs2sync.services.prices import update_prices_from_skinport

app = typer.Typer(
    name="cs2sync",
    help="CS2 inventory + price reconciliation worker",
    no_args_is_help=True,
)

logger = logging.getLogger("cs2sync")


def _setup_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(coro) -> None:
    async def _main():
        try:
            return await coro
        finally:
            await engine.dispose()

    try:
        result = asyncio.run(_main())
    except Exception as e:
        logger.exception("fatal: %s", e)
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2, default=str))


async def _with_session(fn, *args, **kwargs):
    async with AsyncSessionLocal() as db:
        return await fn(db, *args, **kwargs)


@app.callback()
def main() -> None:
    _setup_logging()


@app.command("init-db")
def init_db_cmd():
    """Create all tables."""
    async def _init():
        await init_db()
        return {"database_url": settings.database_url, "ok": True}

    _run(_init())


@app.command("sync-file")
def sync_file(
    snapshot: Path = typer.Argument(..., exists=True, dir_okay=False, help="Exported inventory JSON"),
):
    """Persist an exported snapshot ({"items": [...], "caskets": {...}} or a bare list)."""
    payload = json.loads(snapshot.read_text(encoding="utf-8"))
    try:
        session = SnapshotSession.from_payload(payload)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    async def _sync():
        await init_db()
        return await _with_session(
            sync_inventory, session,
            inventory_timeout=0, casket_retries=0, casket_throttle=0,
        )

    _run(_sync())


@app.command("backfill-defs")
def backfill_defs():
    """Create item_def rows for every distinct market_hash_name and link items."""
    _run(_with_session(backfill_item_defs))


@app.command("prices-update")
def prices_update(
    currency: Optional[str] = typer.Option(None, "--currency", help="Defaults to SKINPORT_CURRENCY"),
    tradable: Optional[bool] = typer.Option(None, "--tradable/--all", help="Only tradable listings"),
):
    """Fetch Skinport prices and write history + current rows."""
    _run(_with_session(update_prices_from_skinport, currency, tradable))


if __name__ == "__main__":
    app()
