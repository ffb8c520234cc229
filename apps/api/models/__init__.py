"""Models package."""

from .user import User
from .profile import Profile
from .video import Video, VideoStatus
from .video_upload import VideoUpload
from .moderation_result import ModerationResult
