"""Example: drive the service layer without Flask.

Opens one session, punches member 1 in and out, and prints the CSV report
for today. Controllers are thin; the same calls back the HTTP routes.
"""

import asyncio
import importlib
from datetime import date

from config import get_settings_module

from src.break_tracker.break_tracker.container import build_container


async def run(container):
    async with container.sessions() as session:
        print(await session.punch_in(1))
        print(session.presence(1))
        print(await session.punch_out(1))

    today = date.today()
    print(await container.export_service.export_csv(actor_is_admin=True, start=today, end=today))


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)
    asyncio.run(run(container))


if __name__ == "__main__":
    main()
