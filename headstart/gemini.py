"""Generation gateway backed by the Gemini ``generateContent`` REST endpoint."""
from __future__ import annotations

import json
import random
import re
import string
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar
from urllib import request
from urllib.error import HTTPError, URLError

from headstart.models import (
    BookSummary,
    Course,
    GrowthPlan,
    HistoricalFigure,
    SchemaError,
)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEXT_MODEL = "gemini-3-flash-preview"
DEFAULT_COURSE_MODEL = "gemini-3-pro-preview"
DEFAULT_SPEECH_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_VOICE = "Kore"
GENERATED_ID_LENGTH = 9
SPANISH_ONLY = "RESPONDE ÚNICAMENTE EN ESPAÑOL."

_JSON_BLOCK_RE = re.compile(r"(\{.*\}|\[.*\])", re.DOTALL)
_ID_ALPHABET = string.ascii_lowercase + string.digits

T = TypeVar("T")


class GenerationError(RuntimeError):
    """Raised when a generation request fails for any reason."""


@dataclass(frozen=True)
class GeminiSettings:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    text_model: str = DEFAULT_TEXT_MODEL
    course_model: str = DEFAULT_COURSE_MODEL
    speech_model: str = DEFAULT_SPEECH_MODEL
    voice: str = DEFAULT_VOICE
    timeout: Optional[float] = None


def _string() -> dict[str, Any]:
    return {"type": "STRING"}


def _string_array(description: Optional[str] = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "ARRAY", "items": _string()}
    if description:
        schema["description"] = description
    return schema


def _object(properties: dict[str, Any]) -> dict[str, Any]:
    return {"type": "OBJECT", "properties": properties, "required": list(properties)}


BOOK_SUMMARY_SCHEMA = _object(
    {
        "id": _string(),
        "title": _string(),
        "author": _string(),
        "keyInsights": _string_array("Los 5 puntos o ideas más accionables."),
        "mainTakeaway": _string(),
        "readingTime": {"type": "NUMBER"},
    }
)

HISTORICAL_FIGURE_SCHEMA = _object(
    {
        "name": _string(),
        "title": _string(),
        "period": _string(),
        "legacy": _string(),
        "corePrinciples": _string_array(),
        "famousQuote": _string(),
    }
)

COURSE_SCHEMA = _object(
    {
        "id": _string(),
        "title": _string(),
        "objective": _string(),
        "totalDuration": _string(),
        "modules": {
            "type": "ARRAY",
            "items": _object(
                {"title": _string(), "content": _string(), "duration": _string()}
            ),
        },
    }
)

GROWTH_PLAN_SCHEMA = _object(
    {
        "dailyFocus": _string(),
        "steps": {
            "type": "ARRAY",
            "items": _object(
                {"title": _string(), "description": _string(), "duration": _string()}
            ),
        },
        "challenge": _object(
            {"title": _string(), "action": _string(), "benefit": _string()}
        ),
        "suggestedBooks": _string_array(),
    }
)

TOPIC_BOOKS_SCHEMA = _string_array()


def _extract_json(text: str) -> Any:
    trimmed = text.strip()
    if trimmed.startswith("{") or trimmed.startswith("["):
        try:
            return json.loads(trimmed)
        except json.JSONDecodeError:
            pass
    match = _JSON_BLOCK_RE.search(trimmed)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise GenerationError(f"Model returned malformed JSON: {exc}") from exc
    raise GenerationError("Model response did not contain JSON.")


def _first_part(response: dict[str, Any]) -> dict[str, Any]:
    try:
        part = response["candidates"][0]["content"]["parts"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise GenerationError("Model response had no content parts.") from exc
    if not isinstance(part, dict):
        raise GenerationError("Model response had no content parts.")
    return part


def generate_record_id() -> str:
    return "".join(random.choices(_ID_ALPHABET, k=GENERATED_ID_LENGTH))


class GeminiClient:
    def __init__(self, settings: GeminiSettings) -> None:
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")

    def _endpoint(self, model: str) -> str:
        model_path = model.strip()
        if not model_path.startswith("models/"):
            model_path = f"models/{model_path}"
        return f"{self.base_url}/{model_path}:generateContent"

    def _post(self, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        data = json.dumps(payload).encode("utf-8")
        req = request.Request(
            self._endpoint(model),
            data=data,
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.settings.api_key,
            },
            method="POST",
        )
        try:
            if self.settings.timeout is None:
                response_context = request.urlopen(req)
            else:
                response_context = request.urlopen(req, timeout=self.settings.timeout)
            with response_context as response:
                body = response.read().decode("utf-8")
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            raise GenerationError(f"Gemini API error ({exc.code}): {detail}") from exc
        except URLError as exc:
            raise GenerationError(f"Gemini API connection error: {exc.reason}") from exc
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError as exc:
            raise GenerationError("Gemini API returned an invalid response body.") from exc
        if not isinstance(parsed, dict):
            raise GenerationError("Gemini API returned an invalid response body.")
        return parsed

    def generate_json(
        self, prompt: str, schema: dict[str, Any], model: Optional[str] = None
    ) -> Any:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }
        response = self._post(model or self.settings.text_model, payload)
        text = _first_part(response).get("text")
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Model response was empty.")
        return _extract_json(text)

    def generate_audio(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {
                        "prebuiltVoiceConfig": {"voiceName": self.settings.voice}
                    }
                },
            },
        }
        response = self._post(self.settings.speech_model, payload)
        inline_data = _first_part(response).get("inlineData") or {}
        audio = inline_data.get("data") if isinstance(inline_data, dict) else None
        if not audio:
            raise GenerationError("No se pudo generar audio")
        return audio


def build_book_summary_prompt(book_title: str) -> str:
    return (
        f'Resume el libro "{book_title}" en un formato de 15 minutos. '
        "Céntrate en ideas de autoayuda, negocios o disciplina. "
        f"{SPANISH_ONLY}"
    )


def build_historical_figure_prompt(character_name: str) -> str:
    return (
        "Genera una ficha de mentoría basada en el personaje histórico: "
        f'"{character_name}". Extrae sus principios de vida y legado. {SPANISH_ONLY}'
    )


def build_course_prompt(topic: str) -> str:
    return (
        f'Crea un micro-curso estructurado sobre el tema: "{topic}". '
        f"Debe tener entre 3 y 5 módulos educativos. {SPANISH_ONLY}"
    )


def build_topic_books_prompt(topic: str) -> str:
    return (
        "Lista 5 libros de no ficción populares y altamente recomendados sobre "
        f'el tema: "{topic}". Solo devuelve los títulos. RESPONDE EN ESPAÑOL.'
    )


def build_growth_plan_prompt(interests: Iterable[str]) -> str:
    interests_list = ", ".join(interests)
    return (
        'Crea un plan de crecimiento personal y un "Reto del Día" basado en: '
        f"{interests_list}. {SPANISH_ONLY}"
    )


def build_speech_prompt(text: str) -> str:
    return f"Lee esto con voz inspiradora y clara: {text}"


def _parse_record(factory: Callable[[Any], T], data: Any) -> T:
    try:
        return factory(data)
    except SchemaError as exc:
        raise GenerationError(f"Model response did not match the schema: {exc}") from exc


def _with_generated_id(data: Any) -> Any:
    if isinstance(data, dict) and not data.get("id"):
        data = {**data, "id": generate_record_id()}
    return data


def generate_book_summary(client: GeminiClient, book_title: str) -> BookSummary:
    data = client.generate_json(build_book_summary_prompt(book_title), BOOK_SUMMARY_SCHEMA)
    return _parse_record(BookSummary.from_dict, _with_generated_id(data))


def generate_historical_figure(client: GeminiClient, character_name: str) -> HistoricalFigure:
    data = client.generate_json(
        build_historical_figure_prompt(character_name), HISTORICAL_FIGURE_SCHEMA
    )
    return _parse_record(HistoricalFigure.from_dict, data)


def generate_course(client: GeminiClient, topic: str) -> Course:
    data = client.generate_json(
        build_course_prompt(topic), COURSE_SCHEMA, model=client.settings.course_model
    )
    return _parse_record(Course.from_dict, _with_generated_id(data))


def get_books_by_topic(client: GeminiClient, topic: str) -> list[str]:
    data = client.generate_json(build_topic_books_prompt(topic), TOPIC_BOOKS_SCHEMA)
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise GenerationError("Model response did not match the schema: expected a list of titles.")
    return list(data)


def generate_growth_plan(client: GeminiClient, interests: Iterable[str]) -> GrowthPlan:
    data = client.generate_json(build_growth_plan_prompt(interests), GROWTH_PLAN_SCHEMA)
    return _parse_record(GrowthPlan.from_dict, data)


def speak_text(client: GeminiClient, text: str) -> str:
    return client.generate_audio(build_speech_prompt(text))


class GenerationGateway:
    """Bundle a client with the generation operations the controller calls."""

    def __init__(self, client: GeminiClient, verbose: bool = False) -> None:
        self.client = client
        self.verbose = verbose

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[gateway] {message}")

    def generate_growth_plan(self, interests: Iterable[str]) -> GrowthPlan:
        interests = list(interests)
        self._log(f"Requesting growth plan for {', '.join(interests)}.")
        return generate_growth_plan(self.client, interests)

    def generate_book_summary(self, book_title: str) -> BookSummary:
        self._log(f"Requesting summary of '{book_title}'.")
        return generate_book_summary(self.client, book_title)

    def generate_historical_figure(self, character_name: str) -> HistoricalFigure:
        self._log(f"Requesting mentor profile for '{character_name}'.")
        return generate_historical_figure(self.client, character_name)

    def generate_course(self, topic: str) -> Course:
        self._log(f"Requesting course on '{topic}'.")
        return generate_course(self.client, topic)

    def get_books_by_topic(self, topic: str) -> list[str]:
        self._log(f"Requesting book list for '{topic}'.")
        return get_books_by_topic(self.client, topic)

    def speak_text(self, text: str) -> str:
        self._log(f"Requesting speech for {len(text)} characters.")
        return speak_text(self.client, text)


__all__ = [
    "BOOK_SUMMARY_SCHEMA",
    "COURSE_SCHEMA",
    "GROWTH_PLAN_SCHEMA",
    "GeminiClient",
    "GeminiSettings",
    "GenerationError",
    "GenerationGateway",
    "HISTORICAL_FIGURE_SCHEMA",
    "TOPIC_BOOKS_SCHEMA",
    "generate_book_summary",
    "generate_course",
    "generate_growth_plan",
    "generate_historical_figure",
    "generate_record_id",
    "get_books_by_topic",
    "speak_text",
]
