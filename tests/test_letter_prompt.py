from types import SimpleNamespace

import pytest

from penpal.errors import InvalidCreditKind
from penpal.models.enums import DeliveryType, SenderType
from penpal.services.credit_pricing import get_credit_package, parse_credit_type
from penpal.services.letter_prompt import build_letter_prompt, format_transcript


def letter(sender, content):
    return SimpleNamespace(sender_type=sender, content=content)


HISTORY = [
    letter(SenderType.USER, "Hi Bramble, do you like apples?"),
    letter(SenderType.CREATURE, "I adore apples, especially the crunchy ones."),
]


def test_transcript_labels_each_letter_oldest_first():
    transcript = format_transcript(HISTORY, "Bramble", user_message="What about pears?")

    assert transcript.split("\n\n") == [
        "You wrote: Hi Bramble, do you like apples?",
        "Bramble wrote: I adore apples, especially the crunchy ones.",
        "You wrote: What about pears?",
    ]


def test_prompt_carries_persona_history_and_guidance():
    prompt = build_letter_prompt(
        creature_name="Bramble",
        backstory="a hedgehog librarian",
        messages=HISTORY,
        delivery_type=DeliveryType.DIGITAL,
        user_message="What about pears?",
    )

    assert prompt.startswith("You are Bramble, a magical creature with this background: a hedgehog librarian")
    assert "Bramble wrote: I adore apples" in prompt
    assert "Around 150-250 words" in prompt
    assert "Age-appropriate and encouraging" in prompt
    assert "Additional context" not in prompt
    assert "make it special" not in prompt
    assert prompt.endswith("just the body text.")


def test_prompt_physical_and_context_lines():
    prompt = build_letter_prompt(
        creature_name="Bramble",
        backstory=None,
        messages=[],
        delivery_type=DeliveryType.PHYSICAL,
        context_notes="It is her birthday",
    )

    assert "a mysterious creature who loves writing letters" in prompt
    assert "Additional context: It is her birthday" in prompt
    assert "printed and mailed as a physical letter, so make it special!" in prompt


def test_credit_packages():
    digital = get_credit_package("digital")
    physical = get_credit_package(DeliveryType.PHYSICAL)

    assert (digital.credits, digital.price_minor, digital.currency) == (100, 500, "usd")
    assert (physical.credits, physical.price_minor) == (5, 500)
    assert physical.product_name == "5 Physical Letter Credits"


def test_unknown_credit_kind():
    with pytest.raises(InvalidCreditKind) as exc_info:
        parse_credit_type("stamps")
    assert exc_info.value.status_code == 422
