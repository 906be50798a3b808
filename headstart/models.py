"""Content records exchanged with the generation API and stored locally.

Field names on the wire are camelCase and must stay exactly as the API
schemas declare them; the dataclasses use snake_case attributes and convert
at the ``from_dict``/``to_dict`` boundary.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

Number = Union[int, float]


class SchemaError(ValueError):
    """Raised when a payload does not match the expected record shape."""


def _require(payload: Mapping[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    if not isinstance(payload, Mapping):
        raise SchemaError(f"Expected an object, got {type(payload).__name__}.")
    if key not in payload or payload[key] is None:
        raise SchemaError(f"Missing required field '{key}'.")
    value = payload[key]
    # bool is an int subclass; JSON true/false is never a valid field value here.
    if isinstance(value, bool) or not isinstance(value, kind):
        raise SchemaError(f"Field '{key}' has the wrong type.")
    return value


def _require_strings(payload: Mapping[str, Any], key: str) -> tuple[str, ...]:
    values = _require(payload, key, list)
    if not all(isinstance(value, str) for value in values):
        raise SchemaError(f"Field '{key}' must be a list of strings.")
    return tuple(values)


def _require_objects(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    values = _require(payload, key, list)
    if not all(isinstance(value, Mapping) for value in values):
        raise SchemaError(f"Field '{key}' must be a list of objects.")
    return values


def _normalize_number(value: Number) -> Number:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class BookSummary:
    id: str
    title: str
    author: str
    key_insights: tuple[str, ...]
    main_takeaway: str
    reading_time: Number
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "BookSummary":
        category = payload.get("category") if isinstance(payload, Mapping) else None
        if category is not None and not isinstance(category, str):
            raise SchemaError("Field 'category' has the wrong type.")
        return cls(
            id=_require(payload, "id", str),
            title=_require(payload, "title", str),
            author=_require(payload, "author", str),
            key_insights=_require_strings(payload, "keyInsights"),
            main_takeaway=_require(payload, "mainTakeaway", str),
            reading_time=_normalize_number(_require(payload, "readingTime", (int, float))),
            category=category,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "keyInsights": list(self.key_insights),
            "mainTakeaway": self.main_takeaway,
            "readingTime": self.reading_time,
        }
        if self.category is not None:
            data["category"] = self.category
        return data


@dataclass(frozen=True)
class DailyChallenge:
    title: str
    action: str
    benefit: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DailyChallenge":
        return cls(
            title=_require(payload, "title", str),
            action=_require(payload, "action", str),
            benefit=_require(payload, "benefit", str),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "action": self.action, "benefit": self.benefit}


@dataclass(frozen=True)
class GrowthStep:
    title: str
    description: str
    duration: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GrowthStep":
        return cls(
            title=_require(payload, "title", str),
            description=_require(payload, "description", str),
            duration=_require(payload, "duration", str),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class GrowthPlan:
    daily_focus: str
    steps: tuple[GrowthStep, ...]
    suggested_books: tuple[str, ...]
    challenge: Optional[DailyChallenge] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GrowthPlan":
        challenge_payload = payload.get("challenge") if isinstance(payload, Mapping) else None
        challenge = None
        if challenge_payload is not None:
            if not isinstance(challenge_payload, Mapping):
                raise SchemaError("Field 'challenge' has the wrong type.")
            challenge = DailyChallenge.from_dict(challenge_payload)
        return cls(
            daily_focus=_require(payload, "dailyFocus", str),
            steps=tuple(
                GrowthStep.from_dict(step) for step in _require_objects(payload, "steps")
            ),
            suggested_books=_require_strings(payload, "suggestedBooks"),
            challenge=challenge,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "dailyFocus": self.daily_focus,
            "steps": [step.to_dict() for step in self.steps],
            "suggestedBooks": list(self.suggested_books),
        }
        if self.challenge is not None:
            data["challenge"] = self.challenge.to_dict()
        return data


@dataclass(frozen=True)
class HistoricalFigure:
    name: str
    title: str
    period: str
    legacy: str
    core_principles: tuple[str, ...]
    famous_quote: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "HistoricalFigure":
        return cls(
            name=_require(payload, "name", str),
            title=_require(payload, "title", str),
            period=_require(payload, "period", str),
            legacy=_require(payload, "legacy", str),
            core_principles=_require_strings(payload, "corePrinciples"),
            famous_quote=_require(payload, "famousQuote", str),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "period": self.period,
            "legacy": self.legacy,
            "corePrinciples": list(self.core_principles),
            "famousQuote": self.famous_quote,
        }


@dataclass(frozen=True)
class CourseModule:
    title: str
    content: str
    duration: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CourseModule":
        return cls(
            title=_require(payload, "title", str),
            content=_require(payload, "content", str),
            duration=_require(payload, "duration", str),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "content": self.content, "duration": self.duration}


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    objective: str
    total_duration: str
    modules: tuple[CourseModule, ...]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Course":
        return cls(
            id=_require(payload, "id", str),
            title=_require(payload, "title", str),
            objective=_require(payload, "objective", str),
            total_duration=_require(payload, "totalDuration", str),
            modules=tuple(
                CourseModule.from_dict(module)
                for module in _require_objects(payload, "modules")
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "objective": self.objective,
            "totalDuration": self.total_duration,
            "modules": [module.to_dict() for module in self.modules],
        }


__all__ = [
    "BookSummary",
    "Course",
    "CourseModule",
    "DailyChallenge",
    "GrowthPlan",
    "GrowthStep",
    "HistoricalFigure",
    "SchemaError",
]
