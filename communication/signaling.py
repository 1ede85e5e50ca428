"""WebRTC signaling relay."""

import logging
from typing import Any, Dict

from .exceptions import ValidationFailed

logger = logging.getLogger(__name__)

SIGNAL_EVENTS = ("offer", "answer", "ice-candidate")


class SignalingRelay:
    """
    Forwards offer/answer/ICE payloads to the other members of a call room.

    Payloads are passed on verbatim; SDP and candidates are not inspected.
    Rendezvous is two-party: the first participant waits for the presence
    join of the second and then originates the offer.
    """

    def __init__(self, registry):
        self.registry = registry

    async def relay(self, event: str, payload: Dict[str, Any], sender: str) -> None:
        if event not in SIGNAL_EVENTS:
            raise ValidationFailed(f"Unknown signaling event: {event}")
        if not isinstance(payload, dict) or not payload.get("target"):
            raise ValidationFailed(f"{event} requires a target room")

        target = str(payload["target"])
        logger.debug(f"Relaying {event} from {sender} to room {target}")
        await self.registry.broadcast(target, event, payload, exclude=sender)
