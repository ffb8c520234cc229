"""Content moderation pipeline."""

from moderation.analyzer import (
    ContentAnalyzer,
    KeywordContentAnalyzer,
    OpenAIContentAnalyzer,
    build_content_analyzer,
)
from moderation.models import (
    AnalysisError,
    EventDecodeError,
    MediaRecord,
    ModerationOutcome,
    ModerationVerdict,
    UploadCompletedEvent,
)
from moderation.record_store import RecordStore, SqlRecordStore
from moderation.worker import ModerationWorker

__all__ = [
    "AnalysisError",
    "ContentAnalyzer",
    "EventDecodeError",
    "KeywordContentAnalyzer",
    "MediaRecord",
    "ModerationOutcome",
    "ModerationVerdict",
    "ModerationWorker",
    "OpenAIContentAnalyzer",
    "RecordStore",
    "SqlRecordStore",
    "UploadCompletedEvent",
    "build_content_analyzer",
]
