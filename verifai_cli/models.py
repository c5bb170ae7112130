"""
Result Types
────────────
Every backend produces a ScoredResult variant tagged with its backend
identity. The tag is set once, where the backend response is parsed, and
renderers switch on `backend` instead of sniffing the payload shape.

  heuristic: local feature-based scorer
  llm:       generative-text backend verdict
  combined:  weighted blend of two of the above
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from verifai_cli import __version__

Impact = Literal["positive", "negative", "neutral"]
ContentType = Literal["text", "image", "video", "document"]


def confidence_level(confidence: int) -> str:
    if confidence > 80:
        return "alta"
    if confidence > 60:
        return "moderada"
    return "baja"


def verdict_phrase(is_ai: bool) -> str:
    return "generado por inteligencia artificial" if is_ai else "escrito por un humano"


def new_analysis_id(prefix: str = "analysis") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class Factor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    weight: float = Field(ge=0.0, le=1.0)
    value: float = Field(ge=0.0, le=100.0)
    description: str = ""
    impact: Impact = "neutral"


class SentimentSignal(BaseModel):
    """Label/score pair returned by the sentiment backend."""
    model_config = ConfigDict(frozen=True)

    label: str
    score: float


class ScoredResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_ai: bool
    confidence: int = Field(ge=0, le=100)
    probability_ai: int = Field(ge=0, le=100)
    probability_human: int = Field(ge=0, le=100)
    explanation: str = ""
    factors: List[Factor] = Field(default_factory=list)


class HeuristicResult(ScoredResult):
    backend: Literal["heuristic"] = "heuristic"
    methodology: str = "Análisis de características estadísticas del texto"


class LLMResult(ScoredResult):
    backend: Literal["llm"] = "llm"
    methodology: str = ""
    model: str = ""
    fallback: bool = False


class CombinedResult(ScoredResult):
    backend: Literal["combined"] = "combined"
    sources: List[str] = Field(default_factory=list)


Verdict = Annotated[
    Union[HeuristicResult, LLMResult, CombinedResult],
    Field(discriminator="backend"),
]


class RelatedContent(BaseModel):
    title: str
    url: str
    snippet: str = ""
    relevance: float = Field(default=0.0, ge=0.0, le=100.0)
    source: str = ""


class AnalysisMetadata(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    processing_time_ms: int = 0
    model: str = ""
    version: str = __version__


class AnalysisRecord(BaseModel):
    """One analysis request and its verdict. Mutable: related content arrives later."""

    id: str = Field(default_factory=new_analysis_id)
    content_type: ContentType
    content: str
    verdict: Verdict
    metadata: AnalysisMetadata = Field(default_factory=AnalysisMetadata)
    related_content: List[RelatedContent] = Field(default_factory=list)
    user_id: str = "anonymous"
    created_at: Optional[datetime] = None
