from __future__ import annotations
import logging
from .events import AllocationFailed, AllocationWarning, BaseEvent, UpdateConflict

_WARNINGS = (AllocationWarning, UpdateConflict)


class LoggerObserver:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in d.items() if k not in ("ts",))

        if isinstance(event, AllocationFailed):
            level = logging.ERROR
        elif isinstance(event, _WARNINGS):
            level = logging.WARNING
        else:
            level = logging.INFO
        self.logger.log(level, f"[EVENT] {etype}: {msg}")
