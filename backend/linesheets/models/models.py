# linesheets/models/models.py

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

ExtractedValue = Union[int, float, str]

Sentiment = Literal["positive", "negative", "neutral"]
Level = Literal["high", "medium", "low"]
ActionRequired = Literal["immediate", "scheduled", "none"]


# -----------------------
# Estado del mensaje
# -----------------------
class MessageStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (MessageStatus.COMPLETED, MessageStatus.FAILED)

    @classmethod
    def can_transition(cls, current: "MessageStatus", target: "MessageStatus") -> bool:
        """Progresión monótona; FAILED se alcanza desde cualquier estado no terminal."""
        current, target = cls(current), cls(target)
        if current.is_terminal:
            return False
        if target is cls.FAILED:
            return True
        return _STATUS_ORDER[target] > _STATUS_ORDER[current]


_STATUS_ORDER = {
    MessageStatus.PENDING: 0,
    MessageStatus.PROCESSING: 1,
    MessageStatus.PROCESSED: 2,
    MessageStatus.COMPLETED: 3,
}


# -----------------------
# Análisis IA
# -----------------------
class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    sentiment: Sentiment = "neutral"
    urgency: Level = "medium"
    importance: Level = "medium"
    category: str = "general"
    keywords: List[str] = Field(default_factory=list)
    summary: str = "メッセージを受信しました"
    action_required: ActionRequired = "none"
    confidence_score: int = Field(70, ge=0, le=100)
    business_intent: Optional[str] = None
    suggested_response: Optional[str] = None
    processing_time: int = 0
    model_used: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.model_used == "fallback"


# -----------------------
# Registro persistido
# -----------------------
class MessageRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: int = Field(alias="_id")
    content: str
    sender_id: Optional[str] = None
    status: MessageStatus = MessageStatus.PENDING
    extracted_data: Optional[Dict[str, Any]] = None
    analysis: Optional[AnalysisResult] = None
    sheets_row_number: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None


class MessageStats(BaseModel):
    total: int = 0
    today: int = 0
    urgency_distribution: Dict[str, int] = Field(default_factory=dict)


# -----------------------
# Resultados del pipeline
# -----------------------
class ProcessResult(BaseModel):
    success: bool
    message_id: Optional[int] = None
    extracted_data: Optional[Dict[str, Any]] = None
    analysis: Optional[AnalysisResult] = None
    row_number: Optional[int] = None
    error: Optional[str] = None
    processing_time: int = 0  # ms


class BatchAnalysisItem(BaseModel):
    message_id: int
    analysis: Optional[AnalysisResult] = None
    error: Optional[str] = None


# -----------------------
# Payloads de API
# -----------------------
class MessageIn(BaseModel):
    text: str = Field(..., min_length=1)
    sender_id: Optional[str] = None


class BatchMessageIn(BaseModel):
    id: int
    content: str


class BatchAnalysisRequest(BaseModel):
    messages: List[BatchMessageIn]
    concurrency: Optional[int] = Field(None, ge=1, le=20)
