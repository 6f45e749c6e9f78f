from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
import orjson

from miniform.config import FIELD_TYPES, MAX_FIELDS_PER_SECTION, MAX_SECTIONS, Settings
from miniform.errors import GenerationError

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are a form builder assistant. Based on the user's description, generate a form configuration.

User description (JSON string): {description}

Respond with a JSON object that follows this exact structure:
{{
  "title": "Form Title",
  "sections": [
    {{
      "id": "s1",
      "name": "Section Name",
      "fields": [
        {{
          "id": "s1f1",
          "label": "Field Label",
          "type": "{types}",
          "required": true
        }}
      ]
    }}
  ]
}}

Rules:
- Maximum {max_sections} sections
- Maximum {max_fields} fields per section
- Field types: {type_list}
- Every section id and every field id must be unique
- Use meaningful section names that group related fields
- Make field labels clear and user-friendly

Respond with ONLY the JSON object, no other text."""


class FormGenerator(Protocol):
    async def generate(self, description: str) -> Any: ...


def build_prompt(description: str) -> str:
    return PROMPT_TEMPLATE.format(
        description=orjson.dumps(description).decode(),
        types="|".join(FIELD_TYPES),
        type_list=", ".join(FIELD_TYPES),
        max_sections=MAX_SECTIONS,
        max_fields=MAX_FIELDS_PER_SECTION,
    )


def extract_json(content: str) -> Any:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        logger.warning("Generator returned non-JSON content: %.200s", text)
        raise GenerationError("Invalid JSON response from AI") from exc


class OpenAIFormGenerator:
    """Asks an OpenAI compatible chat completions endpoint for a draft.

    The returned value is untrusted and must go through the same validation
    as authored input.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._timeout = timeout
        self._transport = transport

    async def generate(self, description: str) -> Any:
        if not self._api_key:
            raise GenerationError("OpenAI API key not configured")

        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": build_prompt(description)}],
            "temperature": 0.7,
            "max_tokens": 1000,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/chat/completions", json=body, headers=headers
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GenerationError("Generator request failed") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError("No response from AI") from exc
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("No response from AI")
        return extract_json(content)


def get_generator(settings: Settings) -> FormGenerator:
    return OpenAIFormGenerator(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
    )
