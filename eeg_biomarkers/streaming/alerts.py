"""
Bounded alert queue with per-severity expiry
"""

import itertools
import logging
from typing import Dict, List, Optional

from ..core.config import ALERT_CAPACITY, ALERT_EXPIRY_SEC, ALERT_SEVERITIES
from ..core.data_types import Alert
from ..core.exceptions import InvalidInputError


class AlertQueue:
    """
    Most recent alerts, newest first

    Pushing beyond capacity evicts the oldest alert. Critical and info
    alerts get an expiry deadline keyed by alert id; warnings stay until
    dismissed or evicted. Removing or evicting an alert drops its deadline,
    so a stale deadline never affects a later alert.
    """

    def __init__(self, capacity: int = ALERT_CAPACITY, expiry: Dict[str, float] = ALERT_EXPIRY_SEC):
        self.capacity = capacity
        self.expiry = dict(expiry)
        self._alerts: List[Alert] = []
        self._deadlines: Dict[int, float] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._alerts)

    @property
    def alerts(self) -> List[Alert]:
        """Copy of the current alerts, newest first"""
        return list(self._alerts)

    def push(self, message: str, severity: str, now: float) -> Alert:
        """
        Add an alert

        Args:
            message: Text shown to the operator
            severity: "info", "warning" or "critical"
            now: Current clock reading in seconds

        Returns:
            Alert: The new alert
        """
        if severity not in ALERT_SEVERITIES:
            raise InvalidInputError(f"Unknown alert severity: {severity}")

        alert = Alert(id=next(self._ids), message=message, timestamp=now, severity=severity)
        self._alerts.insert(0, alert)
        if severity in self.expiry:
            self._deadlines[alert.id] = now + self.expiry[severity]

        while len(self._alerts) > self.capacity:
            evicted = self._alerts.pop()
            self._deadlines.pop(evicted.id, None)

        log = logging.warning if severity != "info" else logging.info
        log(f"[{severity.upper()}] {message}")
        return alert

    def remove(self, alert_id: int) -> Optional[Alert]:
        """Dismiss an alert by id; unknown ids are ignored"""
        self._deadlines.pop(alert_id, None)
        for index, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                return self._alerts.pop(index)
        return None

    def expire(self, now: float) -> List[Alert]:
        """Remove every alert whose deadline has passed and return them"""
        due = [alert_id for alert_id, deadline in self._deadlines.items() if deadline <= now]
        expired = [self.remove(alert_id) for alert_id in due]
        return [alert for alert in expired if alert is not None]

    def clear(self):
        self._alerts.clear()
        self._deadlines.clear()
