"""
Model retrainer.
Periodic batch job that replays recent positive feedback through a
pluggable weight adjuster.
"""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from feed_engine.core.exceptions import StoreUnavailableError
from feed_engine.models.interfaces import InteractionLogStore
from feed_engine.models.schemas import InteractionType, RetrainReport
from feed_engine.services.weights import WeightRegistry

logger = logging.getLogger(__name__)

POSITIVE_FEEDBACK_TYPES = {InteractionType.LIKE, InteractionType.ORDER}


class WeightAdjuster(ABC):
    """
    Strategy for learning from one positive interaction.

    Implementations may only reinforce signal weights through the
    WeightRegistry they are given; weights never drop below their defaults.
    """

    def __init__(self, registry: WeightRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> WeightRegistry:
        return self._registry

    @abstractmethod
    async def adjust_weights(
        self,
        user_id: str,
        candidate_id: str,
        learning_rate: float,
    ) -> None:
        pass


class NoOpWeightAdjuster(WeightAdjuster):
    """Placeholder adjuster: the default weights stay in effect."""

    async def adjust_weights(
        self,
        user_id: str,
        candidate_id: str,
        learning_rate: float,
    ) -> None:
        return None


class ModelRetrainer:
    """
    Scans recent interactions and feeds likes/orders to the weight adjuster.
    Safe to call repeatedly; overlapping runs are skipped.
    """

    def __init__(
        self,
        log_store: InteractionLogStore,
        adjuster: Optional[WeightAdjuster] = None,
        event_limit: int = 10000,
        learning_rate: float = 0.01,
    ) -> None:
        self._log_store = log_store
        self._adjuster = adjuster or NoOpWeightAdjuster(WeightRegistry())
        self._event_limit = event_limit
        self._learning_rate = learning_rate
        self._running = False

    @property
    def adjuster(self) -> WeightAdjuster:
        return self._adjuster

    @property
    def is_running(self) -> bool:
        return self._running

    async def retrain(self) -> RetrainReport:
        """
        Run one retraining pass.

        Raises:
            StoreUnavailableError: If the interaction log cannot be read
        """
        if self._running:
            logger.info("Retrain already in progress, skipping")
            return RetrainReport(skipped=True)

        self._running = True
        start_time = time.time()
        try:
            logger.info("Starting model retraining")
            try:
                events = await self._log_store.query_recent(self._event_limit)
            except Exception as e:
                raise StoreUnavailableError("interaction_log", str(e)) from e

            positive = 0
            for event in events:
                if event.type in POSITIVE_FEEDBACK_TYPES:
                    positive += 1
                    await self._adjuster.adjust_weights(
                        event.user_id, event.video_id, self._learning_rate
                    )

            elapsed_ms = (time.time() - start_time) * 1000
            logger.info(
                f"Model retraining completed: events={len(events)}, "
                f"positive={positive}, elapsed_ms={elapsed_ms:.2f}"
            )
            return RetrainReport(
                events_scanned=len(events),
                positive_events=positive,
                duration_ms=elapsed_ms,
            )
        finally:
            self._running = False


async def run_periodically(retrainer: ModelRetrainer, interval_sec: float) -> None:
    """Retrain every interval_sec until cancelled; failures are logged only."""
    while True:
        await asyncio.sleep(interval_sec)
        try:
            await retrainer.retrain()
        except Exception as e:
            logger.exception(f"Scheduled retraining failed: {e}")
