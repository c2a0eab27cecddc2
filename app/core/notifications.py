import itertools
from dataclasses import asdict, dataclass
from typing import Dict, List, Literal, Optional

from app.observability.logging import log
from app.settings import settings
from app.utils.time import now_ms
from app.utils.timers import Timer

Severity = Literal["info", "success", "warning", "error"]
SEVERITIES = ("info", "success", "warning", "error")


@dataclass
class Notification:
    id: str
    severity: str
    message: str
    createdAt: int

    def as_dict(self) -> dict:
        return asdict(self)


class NotificationQueue:
    """
    Transient user-facing messages. Insertion order is display order.
    Each entry expires after its ttl unless dismissed first; ttl <= 0 keeps
    it until dismissed.
    """

    def __init__(self, default_ttl: Optional[float] = None, owner: str = ""):
        self.default_ttl = settings.NOTIFICATION_TTL_SEC if default_ttl is None else float(default_ttl)
        self.owner = owner
        self._items: Dict[str, Notification] = {}
        self._timers: Dict[str, Timer] = {}
        self._ids = itertools.count(1)

    def push(self, severity: Severity, message: str, ttl: Optional[float] = None) -> str:
        if severity not in SEVERITIES:
            raise ValueError(f"Unknown severity: {severity!r}")
        nid = f"n{next(self._ids)}"
        self._items[nid] = Notification(id=nid, severity=severity, message=message, createdAt=now_ms())

        ttl = self.default_ttl if ttl is None else float(ttl)
        if ttl > 0:
            self._timers[nid] = Timer(ttl, lambda: self._expire(nid)).start()

        log(event="notification_pushed", owner=self.owner, id=nid, severity=severity, message=message)
        return nid

    def info(self, message: str, ttl: Optional[float] = None) -> str:
        return self.push("info", message, ttl)

    def success(self, message: str, ttl: Optional[float] = None) -> str:
        return self.push("success", message, ttl)

    def warning(self, message: str, ttl: Optional[float] = None) -> str:
        return self.push("warning", message, ttl)

    def error(self, message: str, ttl: Optional[float] = None) -> str:
        return self.push("error", message, ttl)

    def _expire(self, nid: str) -> None:
        self._timers.pop(nid, None)
        self._items.pop(nid, None)

    def dismiss(self, nid: str) -> bool:
        timer = self._timers.pop(nid, None)
        if timer:
            timer.cancel()
        return self._items.pop(nid, None) is not None

    def items(self) -> List[Notification]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        for t in self._timers.values():
            t.cancel()
        self._timers.clear()
        self._items.clear()

    close = clear
