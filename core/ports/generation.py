from typing import Protocol


class LetterGeneratorPort(Protocol):
    async def generate_letter(self, prompt: str) -> str: ...
