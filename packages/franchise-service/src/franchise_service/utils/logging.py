import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from franchise_service.utils.json import sanitize_for_json


def log_structured(
    logger: logging.Logger,
    event: str,
    data: Optional[Dict[str, Any]] = None,
    level: int = logging.WARNING,
) -> None:
    """Emit one JSON line with ``level``, ``event``, ``timestamp`` and ``data`` keys."""
    payload = {
        "level": logging.getLevelName(level).lower(),
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": sanitize_for_json(data or {}),
    }
    logger.log(level, json.dumps(payload, sort_keys=True))
