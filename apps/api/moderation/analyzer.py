"""
Content analyzers producing moderation verdicts from a video's title and description.

The keyword analyzer is the default policy. The OpenAI analyzer swaps in a
remote classification call behind the same ``analyze`` contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from openai import OpenAI

from moderation.models import AnalysisError, ModerationVerdict

logger = logging.getLogger(__name__)

DISALLOWED_KEYWORDS: Tuple[str, ...] = (
    "violence",
    "hate",
    "abuse",
    "explicit",
    "inappropriate",
    "offensive",
    "spam",
)

# keyword found in text -> suggested tag
TAG_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("skills", "skills"),
    ("training", "training"),
    ("match", "match"),
    ("goal", "goals"),
    ("dribble", "dribbling"),
    ("pass", "passing"),
    ("shoot", "shooting"),
    ("defend", "defending"),
)

BASE_TAG = "football"
SUMMARY_MAX_CHARS = 100
APPROVED_CONFIDENCE = 0.85
REJECTED_CONFIDENCE = 0.95


def contains_keyword(text: str, keyword: str) -> bool:
    """Case-insensitive substring containment."""
    if not text or not keyword:
        return False
    return keyword.lower() in text.lower()


def match_keywords(text: str, keywords: Iterable[str] = DISALLOWED_KEYWORDS) -> Tuple[str, ...]:
    matched = []
    for keyword in keywords:
        if keyword not in matched and contains_keyword(text, keyword):
            matched.append(keyword)
    return tuple(matched)


def extract_tags(title: str, description: str) -> Tuple[str, ...]:
    text = f"{title} {description}"
    tags = [BASE_TAG]
    for keyword, tag in TAG_KEYWORDS:
        if tag not in tags and contains_keyword(text, keyword):
            tags.append(tag)
    return tuple(tags)


def generate_summary(description: str) -> str:
    if len(description) > SUMMARY_MAX_CHARS:
        return description[:SUMMARY_MAX_CHARS] + "..."
    return description


def format_flag_reason(flags: Iterable[str]) -> str:
    return "Content flagged for: " + ", ".join(flags)


def auto_approval_verdict() -> ModerationVerdict:
    return ModerationVerdict(
        approved=True,
        confidence=0.95,
        flags=(),
        reason="Test mode - automatic approval",
        suggested_tags=("football", "skills", "training"),
        content_summary="Football skills demonstration video",
    )


class ContentAnalyzer(ABC):
    """Base analyzer. Without an API key every call short-circuits to approval."""

    provider = "base"

    def __init__(self, api_key: str = ""):
        self.api_key = (api_key or "").strip()

    @property
    def test_mode(self) -> bool:
        return not self.api_key

    def analyze(self, title: str, description: str, video_id: Optional[str] = None) -> ModerationVerdict:
        title = title or ""
        description = description or ""
        logger.info(
            "Starting video moderation",
            extra={"video_id": video_id, "title": title, "provider": self.provider},
        )
        if self.test_mode:
            logger.info("Running in test mode - auto-approving video", extra={"video_id": video_id})
            return auto_approval_verdict()

        verdict = self._analyze(title, description)
        logger.info(
            "Video moderation completed",
            extra={
                "video_id": video_id,
                "approved": verdict.approved,
                "confidence": verdict.confidence,
                "flags": list(verdict.flags),
            },
        )
        return verdict

    @abstractmethod
    def _analyze(self, title: str, description: str) -> ModerationVerdict:
        """Classify text once an API key is configured."""


class KeywordContentAnalyzer(ContentAnalyzer):
    """Flags content containing any disallowed keyword."""

    provider = "keyword"

    def _analyze(self, title: str, description: str) -> ModerationVerdict:
        flags = match_keywords(f"{title} {description}")
        approved = not flags
        return ModerationVerdict(
            approved=approved,
            confidence=APPROVED_CONFIDENCE if approved else REJECTED_CONFIDENCE,
            flags=flags,
            reason="Content approved" if approved else format_flag_reason(flags),
            suggested_tags=extract_tags(title, description),
            content_summary=generate_summary(description),
        )


class OpenAIContentAnalyzer(ContentAnalyzer):
    """Classifies text with the OpenAI moderation endpoint."""

    provider = "openai"

    def __init__(self, api_key: str = "", model: str = "omni-moderation-latest", client: Optional[Any] = None):
        super().__init__(api_key)
        self.model = model
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _analyze(self, title: str, description: str) -> ModerationVerdict:
        text = f"{title}\n\n{description}".strip()
        try:
            response = self._get_client().moderations.create(model=self.model, input=text)
            result = response.results[0]
            categories: Dict[str, Any] = result.categories.model_dump(by_alias=True)
            scores: Dict[str, Any] = result.category_scores.model_dump(by_alias=True)
        except Exception as exc:
            raise AnalysisError(f"OpenAI moderation call failed: {exc}") from exc

        flags = tuple(name for name, hit in categories.items() if hit)
        if result.flagged and not flags:
            flags = ("flagged",)
        approved = not flags
        top_score = max((float(value or 0.0) for value in scores.values()), default=0.0)
        confidence = top_score if not approved else 1.0 - top_score
        return ModerationVerdict(
            approved=approved,
            confidence=round(min(max(confidence, 0.0), 1.0), 4),
            flags=flags,
            reason="Content approved" if approved else format_flag_reason(flags),
            suggested_tags=extract_tags(title, description),
            content_summary=generate_summary(description),
        )


def build_content_analyzer(config: Any) -> ContentAnalyzer:
    """Pick the analyzer configured by MODERATION_PROVIDER."""
    provider = str(getattr(config, "MODERATION_PROVIDER", "keyword") or "keyword").strip().lower()
    api_key = getattr(config, "OPENAI_API_KEY", "")
    if provider == "openai":
        return OpenAIContentAnalyzer(api_key=api_key, model=getattr(config, "OPENAI_MODERATION_MODEL", "omni-moderation-latest"))
    if provider != "keyword":
        raise ValueError(f"Unknown MODERATION_PROVIDER: {provider}")
    return KeywordContentAnalyzer(api_key=api_key)
