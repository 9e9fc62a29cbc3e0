# app/common/throttle.py

import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, MutableMapping, Optional

from app.core.config import settings

LOCKOUT_MESSAGE = "Too many attempts. Please try again in 5 minutes."
SESSION_KEY = "auth_throttle"


@dataclass
class AttemptThrottle:
    """
    Failure counter for one auth form session.

    After ``max_attempts`` failures further submissions are refused until
    ``lockout_until`` (epoch seconds) has passed; then the counter starts over.
    It lives in the browser session only, the API endpoints carry their own
    per-address limits.
    """

    attempts: int = 0
    lockout_until: Optional[float] = None
    max_attempts: int = settings.LOCKOUT_MAX_ATTEMPTS
    lockout_seconds: int = settings.LOCKOUT_SECONDS
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def check(self) -> Optional[str]:
        """Message to show when the form is locked, else ``None``."""
        if self.lockout_until is None:
            return None
        now = self.clock()
        if now < self.lockout_until:
            remaining = math.ceil(self.lockout_until - now)
            return f"Too many attempts. Please try again in {remaining} seconds"
        self.lockout_until = None
        self.attempts = 0
        return None

    def record_failure(self) -> Optional[str]:
        self.attempts += 1
        if self.attempts >= self.max_attempts:
            self.lockout_until = self.clock() + self.lockout_seconds
            return LOCKOUT_MESSAGE
        return None

    def record_success(self) -> None:
        self.attempts = 0

    @property
    def locked(self) -> bool:
        return self.lockout_until is not None and self.clock() < self.lockout_until

    @classmethod
    def load(cls, session: MutableMapping[str, Any], **kwargs) -> "AttemptThrottle":
        data = session.get(SESSION_KEY) or {}
        return cls(attempts=data.get("attempts", 0), lockout_until=data.get("lockout_until"), **kwargs)

    def save(self, session: MutableMapping[str, Any]) -> None:
        session[SESSION_KEY] = {"attempts": self.attempts, "lockout_until": self.lockout_until}
