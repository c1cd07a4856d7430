"""
Interaction tracker.
Records engagement events and nudges the cached profile.
"""
import logging
import time
from typing import Callable, List, Optional, Tuple

from feed_engine.core.cache import CacheInterface
from feed_engine.core.exceptions import StoreUnavailableError
from feed_engine.models.interfaces import ContentCatalog, InteractionLogStore
from feed_engine.models.schemas import (
    InteractionEvent,
    InteractionType,
    InteractionValue,
    UserProfile,
)

logger = logging.getLogger(__name__)


def updated_watch_time(old: float, watched: float) -> float:
    """Crude running update of the average watch time: (old + new) / 2."""
    return (old + watched) / 2


class InteractionTracker:
    """Append interactions to the log and refresh cached profiles in place."""

    def __init__(
        self,
        log_store: InteractionLogStore,
        catalog: ContentCatalog,
        profile_cache: CacheInterface[UserProfile],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._log_store = log_store
        self._catalog = catalog
        self._profile_cache = profile_cache
        self._clock = clock

    async def track(
        self,
        user_id: str,
        video_id: str,
        interaction_type: InteractionType,
        value: Optional[InteractionValue] = None,
    ) -> InteractionEvent:
        """
        Record an interaction.

        Args:
            user_id: User who interacted
            video_id: Video interacted with
            interaction_type: Kind of interaction
            value: Optional watch time, device and session details

        Returns:
            The appended event

        Raises:
            StoreUnavailableError: If the interaction log rejects the event
        """
        value = value or InteractionValue()
        now = self._clock()
        creator_id, tags = await self._video_metadata(video_id)

        event = InteractionEvent(
            user_id=user_id,
            video_id=video_id,
            creator_id=creator_id,
            type=interaction_type,
            watch_time_seconds=value.watch_time_seconds,
            tags=_merge_tags(tags, value.tags),
            timestamp=now,
            device_type=value.device_type,
            session_id=value.session_id or f"session_{int(now * 1000)}",
        )

        try:
            await self._log_store.append(event)
        except Exception as e:
            logger.error(f"Failed to record interaction: user={user_id}, error={e}")
            raise StoreUnavailableError("interaction_log", str(e)) from e

        if interaction_type == InteractionType.VIEW and value.watch_time_seconds:
            self._refresh_watch_time(user_id, value.watch_time_seconds)

        return event

    def _refresh_watch_time(self, user_id: str, watched: float) -> None:
        def apply(profile: UserProfile) -> UserProfile:
            behaviors = profile.behaviors.model_copy(
                update={"avg_watch_time": updated_watch_time(profile.behaviors.avg_watch_time, watched)}
            )
            return profile.model_copy(update={"behaviors": behaviors})

        updated = self._profile_cache.update(user_id, apply)
        if updated is not None:
            logger.debug(
                f"Cached avg_watch_time for user={user_id} is now "
                f"{updated.behaviors.avg_watch_time:.1f}s"
            )

    async def _video_metadata(self, video_id: str) -> Tuple[Optional[str], List[str]]:
        # Best effort: a catalog outage must not lose the interaction
        try:
            record = await self._catalog.get_candidate(video_id)
        except Exception as e:
            logger.warning(f"Catalog lookup failed for video={video_id}: {e}")
            return None, []
        if not record:
            return None, []
        creator_id = record.get("creator_id")
        tags = record.get("tags")
        if not isinstance(tags, (list, tuple)):
            tags = []
        return (str(creator_id) if creator_id else None), [str(t) for t in tags]


def _merge_tags(catalog_tags: List[str], client_tags: List[str]) -> List[str]:
    merged = list(catalog_tags)
    for tag in client_tags:
        if tag not in merged:
            merged.append(tag)
    return merged
