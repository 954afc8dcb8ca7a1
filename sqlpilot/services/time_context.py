"""Wall-clock context in the store's timezone.

The store names its monthly tables with a ``YYMM`` suffix taken from the
local date (``outm_2505`` holds May 2025 sales), and compares the ``day1``
column against ``YYYY-MM-DD`` strings. Both are derived here from one
instant so the prompt never mixes two dates.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from sqlpilot.config.settings import DEFAULT_TIMEZONE

_TIMEZONE_LABELS = {
    "Asia/Seoul": "KST (Korea Standard Time)",
}

YYMM_TOKEN = "{CurrentYYMM}"
DATE_TOKEN = "{CurrentYYYY-MM-DD}"


@dataclass(frozen=True)
class TimeContext:
    """Date facts for one generation request."""

    timezone: str
    label: str
    today: str  # YYYY-MM-DD
    yymm: str   # two-digit year + two-digit month

    @property
    def sales_table(self) -> str:
        """Real-time sales master table for the current month."""
        return f"outm_{self.yymm}"

    @property
    def sales_detail_table(self) -> str:
        return f"outd_{self.yymm}"

    def tokens(self) -> Dict[str, str]:
        return {YYMM_TOKEN: self.yymm, DATE_TOKEN: self.today}

    def substitute(self, text: str) -> str:
        """Fill the date placeholders used by knowledge text."""
        for token, value in self.tokens().items():
            text = text.replace(token, value)
        return text

    def render(self) -> str:
        return (
            f"[System Context - TIMEZONE: {self.label}]\n"
            f"- Today's Date: {self.today} (Format: YYYY-MM-DD)\n"
            f"- Current Month Suffix: {self.yymm}\n"
            f"- **Real-time Sales Table for Today**: {self.sales_table} "
            "(This is the MASTER table for sales summaries)\n"
            f'- **Instruction**: For questions about "Today", "Now", or "Real-time" sales totals, '
            f"YOU MUST USE '{self.sales_table}'. Use the YYYY-MM-DD date format. "
            "DO NOT look for other tables."
        )


def current_time_context(tz: str = DEFAULT_TIMEZONE, now: Optional[datetime] = None) -> TimeContext:
    """Build the time context for *tz*.

    Args:
        tz: IANA timezone name of the store.
        now: Instant to use instead of the system clock. A naive value is
            taken as UTC.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: unknown timezone name.
    """
    zone = ZoneInfo(tz)
    if now is None:
        moment = datetime.now(zone)
    else:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        moment = now.astimezone(zone)

    return TimeContext(
        timezone=tz,
        label=_TIMEZONE_LABELS.get(tz, moment.tzname() or tz),
        today=moment.strftime("%Y-%m-%d"),
        yymm=moment.strftime("%y%m"),
    )
