"""Map inbound messages to the image slot they fill."""

import re

from tryon_bot.domain.messages import InboundMessage
from tryon_bot.domain.sessions import Session, Slot

SELFIE_PATTERN = re.compile(r"\b(?:selfie|me|face|portrait)\b", re.IGNORECASE)
CLOTHING_PATTERN = re.compile(
    r"\b(?:clothing|dress|shirt|outfit|attire|wear)\b", re.IGNORECASE
)


def classify(message: InboundMessage, session: Session) -> Slot:
    """Return the slot a message fills.

    Explicit vocabulary wins. Unlabeled media is placed positionally: the
    first image is the selfie, the one after a stored selfie is clothing.
    """
    text = message.text or ""
    if SELFIE_PATTERN.search(text):
        return Slot.SELFIE
    if CLOTHING_PATTERN.search(text):
        return Slot.CLOTHING
    if message.has_media:
        return Slot.CLOTHING if session.selfie is not None else Slot.SELFIE
    return Slot.NONE
