"""Full-detail JSON dump of the exported messages."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from chatbook.chatdb.models import MessageRecord

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "messages.json"


def write_snapshot(messages: Iterable[MessageRecord], path: Path) -> int:
    """Write every message as a JSON array; returns the number written."""
    records = [m.to_snapshot() for m in messages]
    path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Wrote {len(records)} messages to {path}")
    return len(records)
