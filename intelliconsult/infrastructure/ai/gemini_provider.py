import google.generativeai as genai

from ...application.ports.ai_provider import AIProvider
from ...exceptions import ExternalServiceFailure


class GeminiProvider(AIProvider):
    def __init__(self, api_key: str, model_name: str) -> None:
        if not api_key:
            raise ExternalServiceFailure("AI service is not configured.")
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)

    def generate_text(self, prompt: str, temperature: float = 0.0, json_output: bool = False) -> str:
        config = {"temperature": temperature}
        if json_output:
            config["response_mime_type"] = "application/json"
        result = self.model.generate_content(prompt, generation_config=config)
        return getattr(result, "text", str(result))
