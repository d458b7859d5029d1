"""
EPG (Electronic Program Guide) data models.
"""
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class Programme(BaseModel):
    """TV programme from XMLTV guide data."""
    start: datetime
    stop: datetime
    title: str = "Unknown"
    desc: Optional[str] = None
    category: Optional[str] = None

    def is_live(self, now: datetime) -> bool:
        """Check if the programme airs at `now` (stop is exclusive)."""
        return self.start <= now < self.stop

    @property
    def duration_minutes(self) -> int:
        """Calculate programme duration in minutes."""
        return int((self.stop - self.start).total_seconds() / 60)


# Channel external id (tvg-id) -> programmes in source order
GuideIndex = dict[str, list[Programme]]
