"""
Moderation worker: bridges upload-completed bus events to the analyzer and
the record store, and owns each video's moderation status transition.

    uploaded -> analyzing -> approved | rejected | failed

Every event starts a fresh cycle, so replaying an event re-moderates the
video and appends another verdict row. Events for the same video are
serialized; events for different videos run concurrently.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
import logging
import time
from typing import Any, AsyncIterator, Dict, Optional, Union

from models.video import VideoStatus
from moderation.analyzer import ContentAnalyzer
from moderation.models import (
    MODERATION_FAILED_REASON,
    EventDecodeError,
    ModerationOutcome,
    ModerationVerdict,
    UploadCompletedEvent,
)
from moderation.record_store import RecordStore

logger = logging.getLogger(__name__)

UPLOADED_SUBJECT = "media.video.uploaded"
MODERATED_SUBJECT = "media.video.moderated"
MODERATED_EVENT_TYPE = "video.moderated"


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class RecordLocks:
    """Per-key exclusive lock, dropped from the map once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._entries: Dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _LockEntry()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(key, None)


class ModerationWorker:
    def __init__(
        self,
        bus: Any,
        store: RecordStore,
        analyzer: ContentAnalyzer,
        *,
        subject: str = UPLOADED_SUBJECT,
        result_subject: str = MODERATED_SUBJECT,
        publish_results: bool = True,
    ):
        self.bus = bus
        self.store = store
        self.analyzer = analyzer
        self.subject = subject
        self.result_subject = result_subject
        self.publish_results = publish_results
        self.record_locks = RecordLocks()
        self._subscription: Optional[Any] = None

    async def start(self) -> None:
        """Subscribe to upload events. Subscription failures propagate."""
        self._subscription = await self.bus.subscribe(self.subject, self.on_upload_completed)
        logger.info("Subscribed to %s events", self.subject)

    async def stop(self) -> None:
        if self._subscription is not None:
            await self._subscription.unsubscribe()
            self._subscription = None
            logger.info("Unsubscribed from %s events", self.subject)

    async def on_upload_completed(self, raw: Union[bytes, str]) -> ModerationOutcome:
        try:
            event = UploadCompletedEvent.decode(raw)
        except EventDecodeError as exc:
            logger.error("Failed to parse event: %s", exc)
            return ModerationOutcome.DROPPED
        logger.info("Received video upload event", extra={"video_id": event.video_id})

        async with self.record_locks.hold(event.video_id):
            return await self._moderate(event)

    async def _moderate(self, event: UploadCompletedEvent) -> ModerationOutcome:
        video_id = event.video_id
        try:
            record = await self.store.get_record(video_id)
        except Exception:
            logger.exception("Failed to get video %s", video_id)
            await self._update_status(video_id, VideoStatus.FAILED, MODERATION_FAILED_REASON)
            await self._publish_result(video_id, event.profile_id, VideoStatus.FAILED, None)
            return ModerationOutcome.FAILED

        if record is None:
            logger.warning("Video %s not found; dropping upload event", video_id)
            return ModerationOutcome.DROPPED

        logger.info(
            "Moderating video",
            extra={"video_id": video_id, "status": VideoStatus.ANALYZING.value},
        )
        try:
            verdict = await asyncio.to_thread(
                self.analyzer.analyze, record.title, record.description, video_id
            )
        except Exception:
            logger.exception("Failed to moderate video %s", video_id)
            await self._update_status(video_id, VideoStatus.FAILED, MODERATION_FAILED_REASON)
            await self._publish_result(video_id, record.profile_id, VideoStatus.FAILED, None)
            return ModerationOutcome.FAILED

        if verdict.approved:
            status = VideoStatus.APPROVED
            logger.info(
                "Video approved",
                extra={"video_id": video_id, "confidence": verdict.confidence},
            )
        else:
            status = VideoStatus.REJECTED
            logger.warning(
                "Video rejected",
                extra={"video_id": video_id, "flags": list(verdict.flags)},
            )

        await self._update_status(video_id, status, verdict.reason)
        await self._store_verdict(video_id, verdict)
        await self._publish_result(video_id, record.profile_id, status, verdict)
        return ModerationOutcome.APPROVED if verdict.approved else ModerationOutcome.REJECTED

    async def _update_status(self, video_id: str, status: VideoStatus, reason: str) -> bool:
        try:
            await self.store.update_status(video_id, status, reason)
            return True
        except Exception:
            logger.exception("Failed to update video %s status to %s", video_id, status.value)
            return False

    async def _store_verdict(self, video_id: str, verdict: ModerationVerdict) -> bool:
        try:
            await self.store.insert_verdict(video_id, verdict)
            return True
        except Exception:
            logger.exception("Failed to store moderation result for video %s", video_id)
            return False

    async def _publish_result(
        self,
        video_id: str,
        profile_id: str,
        status: VideoStatus,
        verdict: Optional[ModerationVerdict],
    ) -> None:
        if not self.publish_results:
            return
        payload = {
            "event_type": MODERATED_EVENT_TYPE,
            "video_id": video_id,
            "profile_id": profile_id,
            "status": status.value,
            "approved": bool(verdict and verdict.approved),
            "flags": list(verdict.flags) if verdict else [],
            "timestamp": int(time.time()),
        }
        try:
            await self.bus.publish(self.result_subject, payload)
        except Exception:
            logger.exception("Failed to publish moderation result for video %s", video_id)

