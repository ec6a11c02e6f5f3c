from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from app.db.session import SessionLocal
from app.marketplace.packages import PackageCatalog


async def _run() -> int:
    async with SessionLocal.begin() as session:
        inserted = await PackageCatalog.seed_default_packages(
            session,
            now_utc=datetime.now(timezone.utc),
        )
    print(f"seed_packages: inserted={inserted}")  # noqa: T201
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
