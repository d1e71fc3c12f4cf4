"""
Voice Transcript Webhook Schemas

Payloads posted by a speech-to-text provider while staff talk to the
dashboard. Only final user transcripts become menu commands; partial
transcripts and call/status events are acknowledged and ignored.

Example payload:
    {
        "type": "transcript",
        "role": "user",
        "transcriptType": "final",
        "transcript": "agotar Lomo Saltado"
    }
"""

from typing import Any, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class VoiceMessageType(str, Enum):
    """Types of messages the provider sends to the webhook."""
    TRANSCRIPT = "transcript"
    SPEECH_UPDATE = "speech-update"
    STATUS_UPDATE = "status-update"
    END_OF_CALL_REPORT = "end-of-call-report"


class TranscriptType(str, Enum):
    PARTIAL = "partial"
    FINAL = "final"


class VoiceWebhookPayload(BaseModel):
    """Root webhook payload; `type` decides which fields are present."""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    type: VoiceMessageType
    role: Optional[str] = Field(None, description="Speaker role: 'user' or 'assistant'")
    transcript: Optional[str] = None
    transcript_type: TranscriptType = Field(TranscriptType.FINAL, alias="transcriptType")
    status: Optional[str] = None

    @property
    def is_final_user_transcript(self) -> bool:
        return (
            self.type == VoiceMessageType.TRANSCRIPT.value
            and self.transcript_type == TranscriptType.FINAL.value
            and self.role in (None, "user")
            and bool((self.transcript or "").strip())
        )


class VoiceWebhookResponse(BaseModel):
    status: str
    kind: Optional[str] = None
    message: Optional[str] = None
    result: Optional[dict[str, Any]] = None
