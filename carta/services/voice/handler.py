"""
Voice Transcript Webhook Handler

Routes final transcripts to the command interpreter. Everything else the
provider sends is acknowledged so it does not retry.
"""

import logging

from carta.menu.commands import CommandInterpreter, OutcomeKind
from carta.services.voice.schemas import VoiceWebhookPayload, VoiceWebhookResponse

logger = logging.getLogger(__name__)


class VoiceWebhookHandler:
    """Handles transcript webhook events for the staff dashboard."""

    def __init__(self, interpreter: CommandInterpreter):
        self.interpreter = interpreter

    def handle_webhook(self, payload: VoiceWebhookPayload) -> VoiceWebhookResponse:
        """Main entry point for processing transcript webhooks."""
        logger.info(f"Processing voice webhook: type={payload.type}")

        if not payload.is_final_user_transcript:
            logger.debug(f"Unhandled webhook event: type={payload.type} transcript_type={payload.transcript_type}")
            return VoiceWebhookResponse(status="acknowledged")

        outcome = self.interpreter.execute(payload.transcript)
        result = None
        if outcome.intent is not None:
            result = {"intent": type(outcome.intent).__name__}

        return VoiceWebhookResponse(
            status="processed" if outcome.kind != OutcomeKind.IGNORED else "ignored",
            kind=outcome.kind.value,
            message=outcome.message,
            result=result,
        )
