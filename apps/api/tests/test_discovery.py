import pytest
import pytest_asyncio

from conftest import create_profile, register_and_login
from models.profile import Profile
from models.user import User
from models.video import Video, VideoStatus


def _video(video_id, profile_id, title, status=VideoStatus.APPROVED, visibility="public", views=0):
    return Video(
        id=video_id,
        profile_id=profile_id,
        title=title,
        description=f"{title} description",
        file_name=f"{video_id}.mp4",
        file_size=2048,
        mime_type="video/mp4",
        blob_name=f"{profile_id}/{video_id}",
        status=status.value,
        visibility=visibility,
        view_count=views,
    )


@pytest_asyncio.fixture
async def seeded(api_client, session_maker):
    async with session_maker() as db:
        for index, (position, city) in enumerate(
            [("forward", "Accra"), ("forward", "Lagos"), ("defender", "Accra")], start=1
        ):
            db.add(User(id=f"seed-user-{index}", email=f"seed{index}@example.com", password_hash="x", role="player"))
            db.add(
                Profile(
                    id=f"seed-profile-{index}",
                    user_id=f"seed-user-{index}",
                    profile_type="player",
                    display_name=f"Seed Player {index}",
                    position=position,
                    location_country="Ghana" if city == "Accra" else "Nigeria",
                    location_city=city,
                    completion_score=10 * index,
                )
            )
        db.add(_video("v-approved", "seed-profile-1", "Skills showcase", views=5))
        db.add(_video("v-popular", "seed-profile-2", "Derby goals", views=500))
        db.add(_video("v-private", "seed-profile-2", "Private skills", visibility="private"))
        db.add(_video("v-pending", "seed-profile-3", "Pending skills", status=VideoStatus.UPLOADED))
        db.add(_video("v-rejected", "seed-profile-3", "Rejected skills", status=VideoStatus.REJECTED))
        await db.commit()
    return api_client


@pytest.mark.asyncio
async def test_feed_only_shows_approved_public_videos(seeded):
    headers = await register_and_login(seeded, "scout@example.com", role="scout")

    response = await seeded.get("/discovery/feed", headers=headers)

    assert response.status_code == 200
    ids = {video["id"] for video in response.json()["videos"]}
    assert ids == {"v-approved", "v-popular"}
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_video_search_matches_title(seeded):
    headers = await register_and_login(seeded, "scout@example.com", role="scout")

    response = await seeded.get("/discovery/videos", params={"q": "skills"}, headers=headers)

    assert [video["id"] for video in response.json()["videos"]] == ["v-approved"]


@pytest.mark.asyncio
async def test_trending_orders_by_views(seeded):
    headers = await register_and_login(seeded, "scout@example.com", role="scout")

    response = await seeded.get("/discovery/trending", headers=headers)

    assert [video["id"] for video in response.json()] == ["v-popular", "v-approved"]


@pytest.mark.asyncio
async def test_profile_search_filters(seeded):
    headers = await register_and_login(seeded, "scout@example.com", role="scout")

    forwards = await seeded.get("/discovery/profiles", params={"position": "forward"}, headers=headers)
    accra = await seeded.get("/discovery/profiles", params={"location": "accra"}, headers=headers)
    named = await seeded.get("/discovery/profiles", params={"q": "Player 2"}, headers=headers)

    assert [p["id"] for p in forwards.json()["profiles"]] == ["seed-profile-2", "seed-profile-1"]
    assert {p["id"] for p in accra.json()["profiles"]} == {"seed-profile-1", "seed-profile-3"}
    assert named.json()["total"] == 1


@pytest.mark.asyncio
async def test_recommendations_use_position_and_location(seeded):
    headers = await register_and_login(seeded, "player@example.com", role="player")
    await create_profile(seeded, headers, display_name="New Forward", position="forward", location_country="Kenya")

    profiles = await seeded.get("/discovery/recommendations/profiles", headers=headers)
    videos = await seeded.get("/discovery/recommendations/videos", headers=headers)

    assert {p["id"] for p in profiles.json()} == {"seed-profile-1", "seed-profile-2"}
    assert [v["id"] for v in videos.json()] == ["v-popular", "v-approved"]


@pytest.mark.asyncio
async def test_recommendations_require_profile(seeded):
    headers = await register_and_login(seeded, "scout@example.com", role="scout")

    response = await seeded.get("/discovery/recommendations/videos", headers=headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_discovery_requires_authentication(seeded):
    response = await seeded.get("/discovery/feed")

    assert response.status_code == 401
