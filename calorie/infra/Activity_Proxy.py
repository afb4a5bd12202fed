"""HTTP client for the activity-tracking proxy.

Only the daily summary is used: its active calories become the day's
burned calories. Any transport or decoding failure is logged and reported
as "no data" so a sync never breaks the caller.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Optional, Dict, Any
import logging

import httpx

from calorie.utilities.config import ACTIVITY_PROXY_URL, ACTIVITY_PROXY_SESSION, ACTIVITY_PROXY_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySummary:
    date: date
    active_calories: Optional[int]
    total_calories: Optional[int] = None
    steps: Optional[int] = None

    @staticmethod
    def from_dict(day: date, data: Dict[str, Any]) -> "DailySummary":
        def pick(*keys):
            for k in keys:
                if data.get(k) is not None:
                    return int(data[k])
            return None
        return DailySummary(
            date=day,
            active_calories=pick("activeCalories", "active_calories"),
            total_calories=pick("totalCalories", "total_calories"),
            steps=pick("steps", "totalSteps"),
        )


class ActivityProxyClient:
    def __init__(self, base_url: str = ACTIVITY_PROXY_URL, session_id: str = ACTIVITY_PROXY_SESSION,
                 timeout: float = ACTIVITY_PROXY_TIMEOUT, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.session_id = session_id
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def get_daily_summary(self, day: date) -> Optional[DailySummary]:
        params = {"date": day.isoformat()}
        if self.session_id:
            params["session"] = self.session_id
        try:
            response = self._client.get("/api/activity/daily-summary", params=params)
            if response.status_code == 404:
                logger.info("No activity summary for %s", day)
                return None
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error("Activity proxy request for %s failed: %s", day, e)
            return None
        except ValueError as e:
            logger.error("Activity proxy returned invalid JSON for %s: %s", day, e)
            return None
        if not isinstance(data, dict) or not data:
            return None
        return DailySummary.from_dict(day, data)

    def close(self):
        self._client.close()
