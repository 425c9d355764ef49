"""Default ``generate(prompt) -> text`` backend over the OpenAI Responses API."""

from __future__ import annotations

from typing import Callable, List, Optional

from openai import OpenAI

from docground.config import settings

Generate = Callable[[str], str]


class OpenAIGenerator:
    """Generation callable bound to one system prompt.

    Construction fails with ``ValueError`` when no API key is configured.
    Errors raised by the API call propagate unchanged; there is no retry.
    """

    def __init__(
        self,
        system_prompt: str,
        temperature: float = 0.2,
        max_output_tokens: int = 800,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not configured in the environment.")
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.model = model or settings.openai_model_chat
        self.client = OpenAI(api_key=api_key, base_url=base_url or settings.openai_base_url)

    def __call__(self, prompt: str) -> str:
        response = self.client.responses.create(
            model=self.model,
            instructions=self.system_prompt,
            input=prompt,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        return response_text(response)


def response_text(response) -> str:
    """Join the text parts of a Responses API result."""
    parts: List[str] = []
    for item in response.output or []:
        for part in getattr(item, "content", None) or []:
            if isinstance(part, dict):
                kind, text = part.get("type"), part.get("text")
            else:
                kind, text = getattr(part, "type", None), getattr(part, "text", None)
            if kind in ("output_text", "text") and text and str(text).strip():
                parts.append(str(text).strip())
    return "\n".join(parts)
