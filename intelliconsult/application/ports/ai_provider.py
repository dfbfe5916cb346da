from typing import Protocol


class AIProvider(Protocol):
    def generate_text(self, prompt: str, temperature: float = 0.0, json_output: bool = False) -> str:
        ...
