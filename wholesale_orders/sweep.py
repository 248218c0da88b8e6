# wholesale_orders/sweep.py
# Overdue sweep for cron: python -m wholesale_orders.sweep [YYYY-MM-DD]

import asyncio
import sys
from datetime import date

from dotenv import load_dotenv

from wholesale_orders.utils.database import AsyncSessionLocal, init_db, engine
from wholesale_orders.utils.log import Log
from wholesale_orders.services.installment import InstallmentService


async def run_sweep(today: date | None = None, session_factory=AsyncSessionLocal) -> int:
    log = Log()
    try:
        async with session_factory() as db:
            return await InstallmentService(db, log).sweep_overdue(today)
    finally:
        await log.shutdown()


async def _main(today: date | None) -> int:
    await init_db()
    try:
        return await run_sweep(today)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    argv = sys.argv[1:] if argv is None else argv
    today = date.fromisoformat(argv[0]) if argv else None

    try:
        updated = asyncio.run(_main(today))
    except Exception as e:
        Log().log_error_sync("sweep", f"Cron sweep failed: {e}", {"today": today})
        return 1
    Log().log_info_sync("sweep", "Cron sweep done", {"today": today or date.today(), "updated": updated})
    return 0


if __name__ == "__main__":
    sys.exit(main())
