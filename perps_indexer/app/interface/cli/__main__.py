import asyncio
import inspect
import typer
import logging
from typing import Optional
from dotenv import load_dotenv
from InquirerPy import inquirer
from perps_indexer.app.infrastructure.decoders.starknet.layouts import build_default_registry
from perps_indexer.app.interface.tasks import TASKS
from perps_indexer.app.interface.tasks.backfill_confirmed_events_task import (
    backfill_confirmed_events_task,
)
from perps_indexer.app.interface.tasks.poll_pending_events_task import poll_pending_events_task
from perps_indexer.app.interface.tasks.run_indexer_loop_task import run_indexer_loop_task
from perps_indexer.app.interface.tasks.show_head_pointer_task import show_head_pointer_task


load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
indexer_app = typer.Typer(help="cli for indexing perpetuals protocol events.")
app.add_typer(indexer_app, name="indexer")


@indexer_app.command("run")
def run() -> None:
    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()

    task = TASKS[task_name]
    kwargs: dict[str, object] = {}
    params = inspect.signature(task).parameters

    if "from_block" in params:
        from_block = inquirer.text(
            message="From block (inclusive, empty = resume from head pointer):",
            default="",
        ).execute()
        kwargs["from_block"] = int(from_block) if from_block.strip() else None

    result = asyncio.run(task(**kwargs))  # type: ignore
    if result is not None:
        typer.echo(result)


@indexer_app.command("backfill")
def backfill(
    from_block: Optional[int] = typer.Option(
        None,
        "--from-block",
        min=0,
        help="Re-index from this block; default resumes from the head pointer.",
    ),
) -> None:
    """Index confirmed events up to the chain tip once."""
    processed = asyncio.run(backfill_confirmed_events_task(from_block=from_block))
    typer.echo(f"processed={processed}")


@indexer_app.command("pending")
def pending() -> None:
    """Poll the pending block once."""
    processed = asyncio.run(poll_pending_events_task())
    typer.echo(f"processed={processed}")


@indexer_app.command("serve")
def serve(
    backend: str = typer.Option(
        "sqlalchemy",
        "--backend",
        help="Record store backend; 'memory' keeps records in-process only (dry run).",
    ),
) -> None:
    """Run backfill and pending polling until interrupted."""
    asyncio.run(run_indexer_loop_task(backend=backend))


@indexer_app.command("head")
def head() -> None:
    """Print the last confirmed block indexed."""
    typer.echo(asyncio.run(show_head_pointer_task()))


@indexer_app.command("selectors")
def selectors() -> None:
    """List the event kinds the indexer decodes."""
    registry = build_default_registry()
    for signature in registry.signatures:
        descriptor = registry.lookup(signature)
        name = descriptor.name if descriptor is not None else ""
        typer.echo(f"{signature}  {name}")


if __name__ == "__main__":
    LOGO = r"""
      --- Perps Indexer CLI ---
    """
    typer.echo(LOGO)
    app()
