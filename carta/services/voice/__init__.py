"""
Voice Service Module

Turns speech-to-text transcript webhooks into menu commands.

Usage:
    from carta.services.voice import VoiceWebhookHandler

    handler = VoiceWebhookHandler(interpreter)
    response = handler.handle_webhook(payload)
"""

from carta.services.voice.handler import VoiceWebhookHandler
from carta.services.voice.schemas import (
    TranscriptType,
    VoiceMessageType,
    VoiceWebhookPayload,
    VoiceWebhookResponse,
)

__all__ = [
    "VoiceWebhookHandler",
    "TranscriptType",
    "VoiceMessageType",
    "VoiceWebhookPayload",
    "VoiceWebhookResponse",
]
