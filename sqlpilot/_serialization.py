"""Capability-local serialization utilities for timestamps, JSON and row previews."""

import json
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Union
from uuid import UUID


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(value: Optional[int]) -> Optional[str]:
    """Render epoch milliseconds as an ISO-8601 UTC string."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class JSONEncoderWithExtras(json.JSONEncoder):
    """JSON encoder that handles UUID, datetime and Decimal values found in result rows."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        return super().default(obj)


def to_json(data: Any, indent: Optional[int] = None) -> str:
    """Convert Python object to JSON string; non-ASCII text is kept readable."""
    return json.dumps(data, cls=JSONEncoderWithExtras, ensure_ascii=False, indent=indent)


def from_json(json_str: Optional[Union[str, bytes, Dict, list]]) -> Any:
    """Convert JSON string to Python object, passing through dicts/lists."""
    if json_str is None:
        return None
    if isinstance(json_str, (dict, list)):
        return json_str
    return json.loads(json_str)
