import pytest
import pytest_asyncio
from sqlalchemy import func, select

from models.moderation_result import ModerationResult
from models.profile import Profile
from models.user import User
from models.video import Video, VideoStatus
from moderation.models import ModerationVerdict, RecordNotFoundError
from moderation.record_store import SqlRecordStore


@pytest_asyncio.fixture
async def store_with_video(session_maker):
    async with session_maker() as db:
        db.add(User(id="user-1", email="player@example.com", password_hash="x", role="player"))
        db.add(Profile(id="profile-1", user_id="user-1", profile_type="player", display_name="Player"))
        db.add(
            Video(
                id="video-1",
                profile_id="profile-1",
                title="Training drills",
                description="Weak foot work",
                file_name="drills.mp4",
                file_size=1024,
                mime_type="video/mp4",
                blob_name="profile-1/video-1",
                status=VideoStatus.UPLOADED.value,
            )
        )
        await db.commit()
    return SqlRecordStore(session_maker), session_maker


def _verdict(approved=True):
    return ModerationVerdict(
        approved=approved,
        confidence=0.85 if approved else 0.95,
        flags=() if approved else ("spam",),
        reason="Content approved" if approved else "Content flagged for: spam",
        suggested_tags=("football", "training"),
        content_summary="Weak foot work",
    )


@pytest.mark.asyncio
async def test_get_record_returns_media_fields(store_with_video):
    store, _ = store_with_video

    record = await store.get_record("video-1")

    assert record.id == "video-1"
    assert record.profile_id == "profile-1"
    assert record.title == "Training drills"
    assert record.description == "Weak foot work"
    assert record.status == VideoStatus.UPLOADED


@pytest.mark.asyncio
async def test_get_record_returns_none_for_missing_video(store_with_video):
    store, _ = store_with_video

    assert await store.get_record("nope") is None


@pytest.mark.asyncio
async def test_update_status_persists_status_and_reason(store_with_video):
    store, session_maker = store_with_video

    await store.update_status("video-1", VideoStatus.REJECTED, "Content flagged for: spam")

    async with session_maker() as db:
        video = (await db.execute(select(Video).where(Video.id == "video-1"))).scalar_one()
    assert video.status == "rejected"
    assert video.moderation_reason == "Content flagged for: spam"
    assert video.updated_at is not None


@pytest.mark.asyncio
async def test_update_status_for_missing_video_raises(store_with_video):
    store, _ = store_with_video

    with pytest.raises(RecordNotFoundError):
        await store.update_status("nope", VideoStatus.APPROVED, "Content approved")


@pytest.mark.asyncio
async def test_analyzing_status_is_never_written(store_with_video):
    store, _ = store_with_video

    with pytest.raises(ValueError):
        await store.update_status("video-1", VideoStatus.ANALYZING, "")


@pytest.mark.asyncio
async def test_insert_verdict_appends_rows(store_with_video):
    store, session_maker = store_with_video

    await store.insert_verdict("video-1", _verdict())
    await store.insert_verdict("video-1", _verdict(approved=False))

    async with session_maker() as db:
        count = (
            await db.execute(select(func.count(ModerationResult.id)).where(ModerationResult.video_id == "video-1"))
        ).scalar()
        rows = (
            await db.execute(select(ModerationResult).where(ModerationResult.approved.is_(False)))
        ).scalars().all()
    assert count == 2
    assert rows[0].flags == ["spam"]
    assert rows[0].suggested_tags == ["football", "training"]
    assert rows[0].result_data["reason"] == "Content flagged for: spam"
