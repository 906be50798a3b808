from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Interest:
    id: str
    label: str
    icon: str
    color: str


@dataclass(frozen=True)
class FeaturedMentor:
    name: str
    icon: str
    bio: str


@dataclass(frozen=True)
class CoursePath:
    title: str
    color: str


INTERESTS: tuple[Interest, ...] = (
    Interest("productivity", "Productividad", "⚡", "blue"),
    Interest("leadership", "Liderazgo", "👔", "purple"),
    Interest("happiness", "Felicidad", "☀️", "yellow"),
    Interest("finance", "Finanzas", "💰", "green"),
    Interest("health", "Salud y Fitness", "🥗", "red"),
    Interest("relationships", "Relaciones", "❤️", "pink"),
    Interest("creativity", "Creatividad", "🎨", "indigo"),
    Interest("spirituality", "Espiritualidad", "🧘", "teal"),
)

FEATURED_MENTORS: tuple[FeaturedMentor, ...] = (
    FeaturedMentor("Marco Aurelio", "🏛️", "Sabiduría Estoica"),
    FeaturedMentor("Leonardo da Vinci", "🎨", "Polimatía y Creatividad"),
    FeaturedMentor("Marie Curie", "🧪", "Resiliencia y Ciencia"),
    FeaturedMentor("Séneca", "📜", "Control Emocional"),
)

COURSE_PATHS: tuple[CoursePath, ...] = (
    CoursePath("Inversiones para Principiantes", "green"),
    CoursePath("Hablar en Público con Impacto", "orange"),
    CoursePath("Fundamentos de IA Generativa", "blue"),
    CoursePath("Psicología del Alto Rendimiento", "red"),
)

EXPLORE_TOPICS: tuple[str, ...] = (
    "Disciplina",
    "Finanzas",
    "Psicología",
    "Liderazgo",
    "Hábitos",
    "Productividad",
)

APP_THEME = {
    "primary": "#3B82F6",
    "accent": "#FBBF24",
    "dark": "#111827",
}

_INTERESTS_BY_ID = {interest.id: interest for interest in INTERESTS}


def interest_by_id(interest_id: str) -> Optional[Interest]:
    return _INTERESTS_BY_ID.get(interest_id)


def interest_labels(interest_ids: Iterable[str]) -> list[str]:
    """Return labels for the given ids in catalog order, skipping unknown ids."""
    wanted = set(interest_ids)
    return [interest.label for interest in INTERESTS if interest.id in wanted]


__all__ = [
    "APP_THEME",
    "COURSE_PATHS",
    "CoursePath",
    "EXPLORE_TOPICS",
    "FEATURED_MENTORS",
    "FeaturedMentor",
    "INTERESTS",
    "Interest",
    "interest_by_id",
    "interest_labels",
]
