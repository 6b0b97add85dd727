"""
Advisory per-model quota tracking.

Failures of the translation call are classified into "quota used up" and
"rate limited" and recorded per model id. Nothing here blocks a request; the
state is there so a caller (or a model picker) can prefer healthy models.
"""

import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from novel_translator.config import RATE_LIMIT_COOLDOWN_SECONDS
from novel_translator.utils.unified_logger import info, warning, LogType


@dataclass(frozen=True)
class QuotaState:
    """Recorded health of one model.

    Attributes:
        depleted: Quota reported as exhausted; cleared only by reset()
        rate_limited_until: Clock time before which the model is cooling down
        rate_limit_count: 429 answers seen since the last success
        request_count: Successful requests
    """
    depleted: bool = False
    rate_limited_until: float = 0.0
    rate_limit_count: int = 0
    request_count: int = 0


class InMemoryQuotaStore:
    """Default backing store. Any object with get/set/clear works."""

    def __init__(self):
        self._states: Dict[str, QuotaState] = {}

    def get(self, model_id: str) -> Optional[QuotaState]:
        return self._states.get(model_id)

    def set(self, model_id: str, state: QuotaState) -> None:
        self._states[model_id] = state

    def clear(self, model_id: Optional[str] = None) -> None:
        if model_id is None:
            self._states.clear()
        else:
            self._states.pop(model_id, None)


class QuotaManager:
    """Tracks depleted and rate-limited models.

    Example:
        >>> quota = QuotaManager()
        >>> quota.record_rate_limit("gemini-3-flash-preview")
        >>> quota.is_available("gemini-3-flash-preview")
        False
    """

    def __init__(self, store=None,
                 rate_limit_cooldown: float = RATE_LIMIT_COOLDOWN_SECONDS,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            store: Backing store (InMemoryQuotaStore if None)
            rate_limit_cooldown: Seconds a model stays unavailable after a 429
            clock: Time source, injectable for tests
        """
        self.store = store if store is not None else InMemoryQuotaStore()
        self.rate_limit_cooldown = rate_limit_cooldown
        self._clock = clock

    def get_state(self, model_id: str) -> QuotaState:
        return self.store.get(model_id) or QuotaState()

    def is_available(self, model_id: str) -> bool:
        """True unless the model is depleted or still cooling down."""
        state = self.get_state(model_id)
        if state.depleted:
            return False
        return self._clock() >= state.rate_limited_until

    def mark_depleted(self, model_id: str) -> None:
        warning(f"Quota exhausted for model {model_id}", LogType.QUOTA)
        self.store.set(model_id, replace(self.get_state(model_id), depleted=True))

    def record_rate_limit(self, model_id: str) -> None:
        state = self.get_state(model_id)
        until = self._clock() + self.rate_limit_cooldown
        warning(f"Rate limited on model {model_id}, cooling down {self.rate_limit_cooldown:.0f}s",
                LogType.QUOTA)
        self.store.set(model_id, replace(
            state,
            rate_limited_until=until,
            rate_limit_count=state.rate_limit_count + 1,
        ))

    def record_success(self, model_id: str) -> None:
        state = self.get_state(model_id)
        self.store.set(model_id, replace(
            state,
            request_count=state.request_count + 1,
            rate_limit_count=0,
        ))

    def reset(self, model_id: Optional[str] = None) -> None:
        """Forget recorded state for one model, or for all of them."""
        self.store.clear(model_id)
        info(f"Quota state reset for {model_id or 'all models'}", LogType.QUOTA)


def classify_failure(error: BaseException, model_id: str, quota: QuotaManager) -> Optional[str]:
    """
    Record a failed call against the quota state.

    A message mentioning "quota" marks the model depleted; otherwise an HTTP
    429 counts as a rate limit. Anything else is not recorded.

    Returns:
        "depleted", "rate_limited" or None
    """
    message = (getattr(error, 'message', None) or str(error)).lower()
    if 'quota' in message:
        quota.mark_depleted(model_id)
        return 'depleted'
    if getattr(error, 'status_code', None) == 429:
        quota.record_rate_limit(model_id)
        return 'rate_limited'
    return None
