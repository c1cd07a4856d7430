"""
Ranking weight state.
Owned by the model retrainer; read by the feed ranker on every request.
"""
import logging
from threading import Lock
from typing import Optional

from feed_engine.models.schemas import RankingWeights

logger = logging.getLogger(__name__)

SIGNALS = tuple(RankingWeights.model_fields)


class WeightRegistry:
    """
    Thread-safe holder of the live ranking weights.

    Weights can only be reinforced: every change is an increase, and no
    weight ever drops below its default value.
    """

    def __init__(self, defaults: Optional[RankingWeights] = None) -> None:
        self._defaults = defaults or RankingWeights()
        self._current = self._defaults.model_copy()
        self._lock = Lock()

    @property
    def defaults(self) -> RankingWeights:
        return self._defaults

    def current(self) -> RankingWeights:
        """Snapshot of the live weights."""
        with self._lock:
            return self._current.model_copy()

    def reinforce(self, signal: str, amount: float) -> RankingWeights:
        """
        Increase one signal's weight.

        Raises:
            ValueError: Unknown signal or negative amount
        """
        if signal not in SIGNALS:
            raise ValueError(f"Unknown ranking signal: {signal}")
        if amount < 0:
            raise ValueError(f"Weights can only be increased, got {amount}")

        with self._lock:
            floor = getattr(self._defaults, signal)
            updated = max(floor, getattr(self._current, signal) + amount)
            self._current = self._current.model_copy(update={signal: updated})
            return self._current.model_copy()

    def reset(self) -> None:
        """Restore the default weights."""
        with self._lock:
            self._current = self._defaults.model_copy()
        logger.info("Ranking weights reset to defaults")
