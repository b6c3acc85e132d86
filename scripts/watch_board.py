"""Live terminal board: one line per member, redrawn on every tick or change.

Usage: python scripts/watch_board.py
"""

from __future__ import annotations

import asyncio
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.break_tracker.break_tracker.container import build_container
from src.break_tracker.break_tracker.core.logging import configure_logging
from src.break_tracker.break_tracker.intervals.clock import format_hms


async def watch(container) -> None:
    members = await container.roster_service.list_members()

    def render(_now=None) -> None:
        lines = []
        for m in members:
            view = session.presence(m.member_id)
            lines.append(f"{m.name:<24} {view.status.value:<10} {format_hms(view.elapsed_ms)}")
        print("\033[2J\033[H" + f"[{session.state.value}]\n" + "\n".join(lines), flush=True)

    session = container.sessions(on_change=render)
    async with session:
        render()
        session.start_ticker(render)
        await asyncio.Event().wait()


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging("WARNING", json_lines=False)
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)
    try:
        asyncio.run(watch(container))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
