from dataclasses import dataclass

import structlog

from ..infrastructure.metrics import notifications_total

logger = structlog.get_logger()


@dataclass(frozen=True)
class Notification:
    level: str  # success | warning | error | info
    message: str


class Notifier:
    """Кратковременные уведомления (toast), которые view отдаёт вместе со снимком."""

    def __init__(self):
        self.items: list[Notification] = []

    def _push(self, level: str, message: str):
        self.items.append(Notification(level=level, message=message))
        notifications_total.labels(level=level).inc()
        logger.debug("notification", level=level, message=message)

    def success(self, message: str): self._push("success", message)
    def warning(self, message: str): self._push("warning", message)
    def error(self, message: str): self._push("error", message)
    def info(self, message: str): self._push("info", message)

    def messages(self, level: str | None = None) -> list[str]:
        return [n.message for n in self.items if level is None or n.level == level]


class View:
    """Базовое состояние экрана: создаётся на запрос, после close() результаты не применяются."""

    def __init__(self):
        self.notifier = Notifier()
        self._mounted = True

    @property
    def mounted(self) -> bool:
        return self._mounted

    def close(self):
        self._mounted = False
