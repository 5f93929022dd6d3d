"""Outbox drain job, triggered externally (cron or scheduler)."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, Optional

from flask import current_app

from habitloop.habitloop_platform.outbox import EventBusAdapter, dispatch_ready, purge_sent

logger = logging.getLogger(__name__)


def run_outbox_dispatch(bus_adapter: Optional[EventBusAdapter] = None) -> Dict[str, int]:
    """
    Publish every ready outbox message, then drop old sent ones.

    Batches run until one comes back empty; messages that failed in this run
    are not ready again until their retry delay passes.

    Returns:
        Dict with sent, failed and purged counts
    """
    config = current_app.config
    adapter = bus_adapter or EventBusAdapter()
    stats = {"sent": 0, "failed": 0, "purged": 0}

    while True:
        sent, failed = dispatch_ready(
            limit=config.get("OUTBOX_BATCH_SIZE", 50),
            retry_in=timedelta(seconds=config.get("OUTBOX_RETRY_SECONDS", 300)),
            max_attempts=config.get("OUTBOX_MAX_ATTEMPTS", 5),
            bus_adapter=adapter,
        )
        stats["sent"] += len(sent)
        stats["failed"] += len(failed)
        if not sent and not failed:
            break

    stats["purged"] = purge_sent(timedelta(days=config.get("OUTBOX_RETENTION_DAYS", 7)))
    logger.info(f"Outbox dispatch complete: {stats}")
    return stats
