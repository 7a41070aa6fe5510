"""Periodic sweep of expired sessions and stale uploads.

Runs inside the ASGI lifespan task group, independent of request tasks.
A failing sweep is logged and retried on the next tick.
"""

from __future__ import annotations

import logging
import stat
import time
from pathlib import Path
from typing import TYPE_CHECKING

import anyio

from burrow.sessions.manager import clear_old_sessions

if TYPE_CHECKING:
    from burrow.app import App

logger = logging.getLogger("burrow.server")


async def clear_old_uploads(directory: str | Path, minutes_expiration: float, now: float | None = None) -> int:
    """Delete non-empty regular files whose change time is older than the window."""
    root = anyio.Path(directory)
    if not await root.is_dir():
        return 0
    cutoff = (now if now is not None else time.time()) - minutes_expiration * 60
    removed = 0
    async for path in root.iterdir():
        try:
            info = await path.stat()
        except FileNotFoundError:
            continue
        if not stat.S_ISREG(info.st_mode) or info.st_size == 0:
            continue
        if info.st_ctime < cutoff:
            try:
                await path.unlink(missing_ok=True)
            except OSError:
                logger.exception("Cannot delete upload %s", path)
                continue
            removed += 1
    if removed:
        logger.info("Removed %d stale upload(s) from %s", removed, directory)
    return removed


async def sweep_once(app: App) -> None:
    """One sweep pass; failures are logged, never raised."""
    try:
        await clear_old_sessions(app.store, app.config.sessions.minutes_expiration)
    except Exception:
        logger.exception("Session sweep failed")

    upload_sweep = app.config.upload_sweep
    if upload_sweep is not None:
        try:
            await clear_old_uploads(app.config.paths.uploads, upload_sweep.minutes_expiration)
        except Exception:
            logger.exception("Upload sweep failed")


async def run_sweeper(app: App) -> None:
    """Sweep every ``sweep_interval`` seconds until cancelled."""
    interval = app.config.sweep_interval
    while True:
        await anyio.sleep(interval)
        await sweep_once(app)
