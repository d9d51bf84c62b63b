"""
Prompt construction for creature replies.
"""
from typing import Iterable, Optional

from penpal.models.enums import DeliveryType, SenderType


def format_transcript(messages: Iterable, creature_name: str, user_message: Optional[str] = None) -> str:
    """Oldest-first transcript, one labeled paragraph per letter."""
    lines = []
    for message in messages:
        sender = "You wrote" if message.sender_type == SenderType.USER else f"{creature_name} wrote"
        lines.append(f"{sender}: {message.content}")
    if user_message:
        lines.append(f"You wrote: {user_message}")
    return "\n\n".join(lines)


def build_letter_prompt(
    *,
    creature_name: str,
    backstory: Optional[str],
    messages: Iterable,
    delivery_type: DeliveryType,
    user_message: Optional[str] = None,
    context_notes: Optional[str] = None,
) -> str:
    transcript = format_transcript(messages, creature_name, user_message)
    context = f"\n\nAdditional context: {context_notes}" if context_notes else ""
    background = backstory or "a mysterious creature who loves writing letters"
    physical = (
        "This will be printed and mailed as a physical letter, so make it special!"
        if delivery_type == DeliveryType.PHYSICAL
        else ""
    )

    return f"""You are {creature_name}, a magical creature with this background: {background}

You are writing a letter back to a child who has been corresponding with you. Here is your conversation history:

{transcript}
{context}

Write a warm, engaging letter response from {creature_name}'s perspective. Make it:
- Age-appropriate and encouraging
- Consistent with {creature_name}'s personality and backstory
- Reference things from the conversation history
- Ask questions to keep the conversation going
- Be magical and imaginative
- Around 150-250 words

{physical}

Write only the letter content, not "Dear [name]" or signature - just the body text."""
