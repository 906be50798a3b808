"""Mobile-styled HTML rendering for the HeadStart app.

Every function here is a pure function of an ``AppSnapshot``: buttons are
small forms that post intents back to the server, which redirects to ``/``.
"""
from __future__ import annotations

import json
from html import escape
from typing import Iterable, Sequence

from headstart.catalog import (
    APP_THEME,
    COURSE_PATHS,
    EXPLORE_TOPICS,
    FEATURED_MENTORS,
    INTERESTS,
    interest_labels,
)
from headstart.controller import (
    AppMode,
    AppSnapshot,
    CourseDetailView,
    CoursesView,
    ExploreView,
    HistoryDetailView,
    HistoryView,
    HomeView,
    ProfileView,
    SavedView,
    SummaryView,
)

APP_TITLE = "HeadStart"
REFRESH_SECONDS = 1

NAV_ITEMS = (
    ("home", "🏠", "Inicio"),
    ("courses", "🎓", "Cursos"),
    ("explore", "🔍", "Explorar"),
    ("history", "🏛️", "Historia"),
    ("profile", "👤", "Perfil"),
)

TINTS = {
    "blue": "#3b82f6",
    "purple": "#9333ea",
    "yellow": "#eab308",
    "green": "#16a34a",
    "red": "#dc2626",
    "pink": "#db2777",
    "indigo": "#4f46e5",
    "teal": "#0d9488",
    "orange": "#ea580c",
}

_STYLE = """
      :root {
        color-scheme: light;
        --primary-dark: #2563eb;
        --muted: #6b7280;
        --surface: #ffffff;
        --bg: #f9fafb;
        --border: #f3f4f6;
      }

      * {
        box-sizing: border-box;
      }

      body {
        margin: 0;
        font-family: "Inter", system-ui, -apple-system, sans-serif;
        background: var(--bg);
        color: var(--dark);
      }

      form {
        margin: 0;
      }

      button {
        font: inherit;
        cursor: pointer;
        border: none;
        background: none;
        color: inherit;
      }

      button:disabled {
        cursor: not-allowed;
        opacity: 0.5;
      }

      .screen {
        max-width: 28rem;
        margin: 0 auto;
        min-height: 100vh;
        padding: 24px 16px 96px;
      }

      .header {
        position: sticky;
        top: 0;
        z-index: 10;
        display: flex;
        align-items: center;
        justify-content: space-between;
        max-width: 28rem;
        margin: 0 auto;
        padding: 12px 16px;
        background: rgba(255, 255, 255, 0.85);
        backdrop-filter: blur(12px);
        border-bottom: 1px solid var(--border);
      }

      .brand {
        display: flex;
        align-items: center;
        gap: 8px;
        font-weight: 700;
        font-size: 1.1rem;
      }

      .logo {
        display: inline-flex;
        align-items: center;
        justify-content: center;
        width: 32px;
        height: 32px;
        border-radius: 10px;
        background: var(--primary);
        color: #fff;
        font-weight: 800;
      }

      .nav {
        position: fixed;
        bottom: 0;
        left: 0;
        right: 0;
        display: flex;
        justify-content: space-around;
        padding: 8px 0 12px;
        background: rgba(255, 255, 255, 0.9);
        backdrop-filter: blur(12px);
        border-top: 1px solid var(--border);
      }

      .nav-item {
        display: flex;
        flex-direction: column;
        align-items: center;
        gap: 2px;
        font-size: 0.6rem;
        font-weight: 700;
        text-transform: uppercase;
        color: #9ca3af;
      }

      .nav-item.active {
        color: var(--primary);
      }

      .nav-item span:first-child {
        font-size: 1.25rem;
      }

      .grid {
        display: grid;
        grid-template-columns: 1fr 1fr;
        gap: 16px;
      }

      .card {
        display: block;
        width: 100%;
        padding: 20px;
        border-radius: 28px;
        background: var(--surface);
        border: 1px solid var(--border);
        box-shadow: 0 1px 2px rgba(0, 0, 0, 0.05);
        text-align: left;
      }

      .card.selected {
        border-color: var(--primary);
        box-shadow: 0 0 0 2px var(--primary);
      }

      .focus {
        padding: 32px;
        border-radius: 40px;
        background: var(--primary);
        color: #fff;
      }

      .pill {
        display: inline-block;
        padding: 4px 12px;
        border-radius: 999px;
        font-size: 0.65rem;
        font-weight: 800;
        text-transform: uppercase;
        background: rgba(255, 255, 255, 0.2);
      }

      .primary-button {
        width: 100%;
        padding: 20px;
        border-radius: 20px;
        background: var(--primary);
        color: #fff;
        font-weight: 700;
        font-size: 1.1rem;
      }

      .text-input {
        width: 100%;
        padding: 18px 24px;
        border-radius: 24px;
        border: 1px solid var(--border);
        font: inherit;
      }

      .shelf {
        display: flex;
        gap: 16px;
        overflow-x: auto;
        padding-bottom: 12px;
      }

      .shelf .card {
        min-width: 140px;
      }

      .muted {
        color: var(--muted);
      }

      .spinner {
        width: 96px;
        height: 96px;
        margin: 0 auto 32px;
        border-radius: 50%;
        border: 4px solid #dbeafe;
        border-top-color: var(--primary);
        animation: spin 1s linear infinite;
      }

      .loading {
        display: flex;
        flex-direction: column;
        align-items: center;
        justify-content: center;
        min-height: 100vh;
        text-align: center;
        padding: 32px;
      }

      @keyframes spin {
        to {
          transform: rotate(360deg);
        }
      }
"""

_PAGE = """<!DOCTYPE html>
<html lang="es">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
__REFRESH__
    <title>__TITLE__</title>
    <style>__STYLE__    </style>
  </head>
  <body>
__BODY__
  </body>
</html>
"""


def _tint(token: str) -> str:
    return TINTS.get(token, APP_THEME["primary"])


def _theme_rules() -> str:
    variables = "".join(f"--{name}: {value}; " for name, value in APP_THEME.items())
    return f"\n      :root {{ {variables}}}\n"


def _intent_form(
    intent: str,
    label: str,
    fields: dict[str, str] | None = None,
    css_class: str = "card",
    disabled: bool = False,
) -> str:
    hidden = "".join(
        f'<input type="hidden" name="{escape(name)}" value="{escape(value)}" />'
        for name, value in (fields or {}).items()
    )
    disabled_attr = " disabled" if disabled else ""
    return (
        f'<form method="post" action="/api/{intent}">{hidden}'
        f'<button type="submit" class="{css_class}"{disabled_attr}>{label}</button></form>'
    )


def _text_form(intent: str, field: str, placeholder: str) -> str:
    return (
        f'<form method="post" action="/api/{intent}" class="search-form">'
        f'<input class="text-input" type="text" name="{field}" '
        f'placeholder="{escape(placeholder)}" autocomplete="off" />'
        "</form>"
    )


def _back_button(title: str) -> str:
    return (
        '<div class="brand">'
        + _intent_form("back", "←", css_class="back-button")
        + f"<h2>{escape(title)}</h2></div>"
    )


def _numbered(items: Iterable[str]) -> str:
    return "".join(
        f'<div class="card"><strong>{index:02d}</strong> {escape(item)}</div>'
        for index, item in enumerate(items, start=1)
    )


def render_onboarding(snapshot: AppSnapshot) -> str:
    selected = set(snapshot.selected_interests)
    cards = []
    for interest in INTERESTS:
        css = "card selected" if interest.id in selected else "card"
        label = (
            f'<span class="icon" style="color:{_tint(interest.color)}">{interest.icon}</span> '
            f"<strong>{escape(interest.label)}</strong>"
        )
        cards.append(
            _intent_form(
                "toggle-interest", label, {"interest": interest.id}, css_class=css
            )
        )
    start = _intent_form(
        "start",
        "Comenzar Experiencia →",
        css_class="primary-button",
        disabled=not selected,
    )
    return (
        '<main class="screen" id="onboardingView">'
        '<div style="text-align:center"><span class="logo">H</span>'
        '<h1>Transforma tu vida con <span style="color:var(--primary)">IA</span>.</h1>'
        '<p class="muted">¿Qué quieres dominar hoy?</p></div>'
        f'<div class="grid" id="interestGrid">{"".join(cards)}</div>'
        f'<div style="margin-top:48px">{start}</div>'
        "</main>"
    )


def render_loading(snapshot: AppSnapshot) -> str:
    return (
        '<main class="loading" id="loadingView">'
        '<div class="spinner"></div>'
        "<h2>Inspirando Conocimiento</h2>"
        f'<p class="muted">{escape(snapshot.loading_message)}</p>'
        "</main>"
    )


def render_home(snapshot: AppSnapshot) -> str:
    plan = snapshot.plan
    parts = [
        '<section id="homeView">',
        '<p class="pill" style="color:var(--primary)">Dashboard de Crecimiento</p>',
        "<h1>Bienvenido de vuelta</h1>",
        '<div class="grid">',
        _intent_form(
            "navigate",
            "🏛️ <strong>Mentores Históricos</strong>"
            '<p class="muted">Aprende directamente de Séneca, Da Vinci y más.</p>',
            {"view": "history"},
        ),
        _intent_form(
            "navigate",
            "🎓 <strong>Micro-Cursos Personalizados</strong>"
            '<p class="muted">Crea formaciones de cualquier tema al instante.</p>',
            {"view": "courses"},
        ),
        "</div>",
    ]
    if plan is not None:
        steps = "".join(
            f'<span class="pill">{escape(step.duration)} • {escape(step.title)}</span> '
            for step in plan.steps[:2]
        )
        parts.append(
            '<div class="focus" id="dailyFocus">'
            '<p class="pill">Enfoque de hoy</p>'
            f"<h3>{escape(plan.daily_focus)}</h3>{steps}</div>"
        )
        if plan.challenge is not None:
            parts.append(
                '<div class="card" id="dailyChallenge">'
                '<p class="pill" style="color:var(--accent)">Reto del Día</p>'
                f"<h3>{escape(plan.challenge.title)}</h3>"
                f"<p>{escape(plan.challenge.action)}</p>"
                f'<p class="muted">{escape(plan.challenge.benefit)}</p></div>'
            )
        books = "".join(
            _intent_form("search-book", f"📚 {escape(book)}", {"query": book})
            for book in plan.suggested_books
        )
        parts.append(
            "<h3>📖 Resúmenes de 15 min</h3>"
            f'<div class="shelf" id="suggestedBooks">{books}</div>'
        )
    parts.append("</section>")
    return "".join(parts)


def render_explore(snapshot: AppSnapshot) -> str:
    topics = "".join(
        _intent_form("explore-topic", escape(topic), {"topic": topic})
        for topic in EXPLORE_TOPICS
    )
    parts = [
        '<section id="exploreView"><h1>Explorar por Temas</h1>',
        f'<div class="grid">{topics}</div>',
    ]
    if snapshot.is_topic_loading:
        parts.append('<p class="muted" id="topicLoading">Buscando mejores libros...</p>')
    if snapshot.topic_recommendations:
        books = "".join(
            _intent_form("search-book", f"📚 {escape(book)}", {"query": book})
            for book in snapshot.topic_recommendations
        )
        parts.append(f'<h3>Libros Recomendados</h3><div id="topicBooks">{books}</div>')
    parts.append("</section>")
    return "".join(parts)


def render_history(snapshot: AppSnapshot) -> str:
    mentors = "".join(
        _intent_form(
            "search-history",
            f"{mentor.icon} <strong>{escape(mentor.name)}</strong>"
            f'<p class="muted">{escape(mentor.bio)}</p>',
            {"name": mentor.name},
        )
        for mentor in FEATURED_MENTORS
    )
    return (
        '<section id="historyView">'
        + _back_button("Mentores Históricos")
        + '<p class="muted"><em>"Aprender de los errores es sabiduría; aprender de '
        'los éxitos de los grandes es atajo."</em></p>'
        "<h3>Recomendados para ti</h3>"
        f'<div class="grid">{mentors}</div>'
        "<h3>¿A quién buscas?</h3>"
        + _text_form("search-history", "name", "Ej: Alejandro Magno, Cleopatra...")
        + "</section>"
    )


def render_courses(snapshot: AppSnapshot) -> str:
    paths = "".join(
        _intent_form(
            "create-course",
            f'<span style="color:{_tint(path.color)}">●</span> {escape(path.title)} →',
            {"topic": path.title},
        )
        for path in COURSE_PATHS
    )
    return (
        '<section id="coursesView">'
        + _back_button("Formaciones con IA")
        + '<p class="muted">Convierte cualquier curiosidad en una formación '
        "estructurada y accionable.</p>"
        '<div class="focus"><h3>Generador de Micro-Cursos</h3>'
        "<p>Ingresa un tema y nuestra IA creará un currículo de 5 módulos en segundos.</p>"
        + _text_form("create-course", "topic", "¿Qué quieres aprender hoy?")
        + "</div><h3>Rutas de Éxito</h3>"
        + paths
        + "</section>"
    )


def render_summary(snapshot: AppSnapshot, view: SummaryView) -> str:
    summary = view.summary
    saved = snapshot.is_saved(summary.id)
    category = (
        f'<p class="pill" style="color:var(--primary)">{escape(summary.category)}</p>'
        if summary.category
        else ""
    )
    listen = _intent_form(
        "play-summary-audio",
        "Cargando..." if snapshot.is_audio_loading else "▶ ESCUCHAR",
        css_class="primary-button",
        disabled=snapshot.is_audio_loading,
    )
    save = _intent_form(
        "toggle-saved",
        "★ Guardado" if saved else "☆ Guardar",
        {"book_id": summary.id},
        css_class="card",
    )
    return (
        '<section id="summaryView">'
        + _back_button("Resumen del Libro")
        + '<div style="text-align:center"><span style="font-size:3.5rem">📘</span>'
        f"<h1>{escape(summary.title)}</h1>"
        f'<p style="color:var(--primary)"><strong>{escape(summary.author)}</strong></p>'
        f'{category}<p class="muted">{escape(str(summary.reading_time))} min</p></div>'
        + listen
        + save
        + '<div class="card"><h3>La Gran Idea</h3>'
        f'<p><em>"{escape(summary.main_takeaway)}"</em></p></div>'
        "<h3>Aprendizajes Clave</h3>"
        f'<div id="keyInsights">{_numbered(summary.key_insights)}</div>'
        "</section>"
    )


def render_history_detail(snapshot: AppSnapshot, view: HistoryDetailView) -> str:
    figure = view.figure
    return (
        '<section id="historyDetailView">'
        + _back_button("Mentor Histórico")
        + f"<h1>{escape(figure.name)}</h1>"
        f'<p style="color:var(--primary)"><strong>{escape(figure.title)}</strong></p>'
        f'<p class="muted">{escape(figure.period)}</p>'
        f'<div class="focus"><p><em>“{escape(figure.famous_quote)}”</em></p></div>'
        "<h3>Filosofía y Principios</h3>"
        f'<div id="corePrinciples">{_numbered(figure.core_principles)}</div>'
        '<div class="card"><h4>Por qué es leyenda</h4>'
        f"<p>{escape(figure.legacy)}</p></div>"
        "</section>"
    )


def render_course_detail(snapshot: AppSnapshot, view: CourseDetailView) -> str:
    course = view.course
    modules = "".join(
        '<div class="card">'
        f'<span class="pill" style="background:#9333ea;color:#fff">Módulo {index:02d}</span> '
        f'<span class="muted">{escape(module.duration)}</span>'
        f"<h3>{escape(module.title)}</h3><p>{escape(module.content)}</p></div>"
        for index, module in enumerate(course.modules, start=1)
    )
    return (
        '<section id="courseDetailView">'
        + _back_button("Formación Activa")
        + f"<h1>{escape(course.title)}</h1>"
        f'<p style="color:#9333ea"><strong>{escape(course.total_duration)} • CURSO IA</strong></p>'
        '<div class="card"><h4>Tu Objetivo</h4>'
        f'<p><em>"{escape(course.objective)}"</em></p></div>'
        f'<div id="courseModules">{modules}</div>'
        "</section>"
    )


def render_saved(snapshot: AppSnapshot) -> str:
    if not snapshot.saved_books:
        body = '<p class="muted">Todavía no has guardado ningún resumen.</p>'
    else:
        body = "".join(
            '<div class="card">'
            + _intent_form(
                "open-saved",
                f"📘 <strong>{escape(book.title)}</strong> "
                f'<span class="muted">{escape(book.author)}</span>',
                {"book_id": book.id},
                css_class="saved-open",
            )
            + _intent_form(
                "remove-saved", "Quitar", {"book_id": book.id}, css_class="pill"
            )
            + "</div>"
            for book in snapshot.saved_books
        )
    return f'<section id="savedView"><h1>Mi Biblioteca</h1>{body}</section>'


def render_profile(snapshot: AppSnapshot) -> str:
    labels = ", ".join(interest_labels(snapshot.selected_interests)) or "Sin intereses"
    return (
        '<section id="profileView" style="text-align:center">'
        '<span style="font-size:3rem">👤</span>'
        "<h2>Usuario Premium</h2>"
        '<p class="muted">Nivel de Sabiduría: Aprendiz</p>'
        f'<p class="muted">Intereses: {escape(labels)}</p>'
        + _intent_form(
            "navigate",
            f"📚 Mi Biblioteca ({len(snapshot.saved_books)})",
            {"view": "saved"},
        )
        + _intent_form("reset", "Reiniciar Experiencia", css_class="pill")
        + "</section>"
    )


def render_view(snapshot: AppSnapshot) -> str:
    view = snapshot.view
    if isinstance(view, SummaryView):
        return render_summary(snapshot, view)
    if isinstance(view, HistoryDetailView):
        return render_history_detail(snapshot, view)
    if isinstance(view, CourseDetailView):
        return render_course_detail(snapshot, view)
    if isinstance(view, ExploreView):
        return render_explore(snapshot)
    if isinstance(view, HistoryView):
        return render_history(snapshot)
    if isinstance(view, CoursesView):
        return render_courses(snapshot)
    if isinstance(view, ProfileView):
        return render_profile(snapshot)
    if isinstance(view, SavedView):
        return render_saved(snapshot)
    if isinstance(view, HomeView):
        return render_home(snapshot)
    raise TypeError(f"Unsupported view {view!r}.")


def render_layout(snapshot: AppSnapshot, content: str) -> str:
    nav = "".join(
        _intent_form(
            "navigate",
            f"<span>{icon}</span><span>{label}</span>",
            {"view": name},
            css_class="nav-item active" if snapshot.view.name == name else "nav-item",
        )
        for name, icon, label in NAV_ITEMS
    )
    header = (
        '<header class="header">'
        + _intent_form(
            "navigate",
            f'<span class="logo">H</span> {APP_TITLE}',
            {"view": "home"},
            css_class="brand",
        )
        + _intent_form("navigate", "👤", {"view": "profile"}, css_class="avatar")
        + "</header>"
    )
    return f'{header}<main class="screen">{content}</main><nav class="nav">{nav}</nav>'


def _audio_tags(audio_urls: Sequence[str], reload_when_done: bool = False) -> str:
    reload_attr = ' onended="location.reload()"' if reload_when_done else ""
    return "".join(
        f'<audio autoplay src="{escape(url)}" class="speech"{reload_attr}></audio>'
        for url in audio_urls
    )


def _alert_script(message: str) -> str:
    return (
        f"<script>alert({json.dumps(message)});"
        "fetch('/api/dismiss-alert', {method: 'POST'});</script>"
    )


def _needs_refresh(snapshot: AppSnapshot) -> bool:
    return (
        snapshot.mode == AppMode.LOADING
        or snapshot.is_topic_loading
        or snapshot.is_audio_loading
    )


def render_page(snapshot: AppSnapshot, audio_urls: Sequence[str] = ()) -> str:
    """Render the whole document for the given state."""
    if snapshot.mode == AppMode.ONBOARDING:
        body = render_onboarding(snapshot)
    elif snapshot.mode == AppMode.LOADING:
        body = render_loading(snapshot)
    else:
        body = render_layout(snapshot, render_view(snapshot))
    pending = _needs_refresh(snapshot)
    # A meta refresh would stop the clips this page starts; they reload on end.
    body += _audio_tags(audio_urls, reload_when_done=pending)
    if snapshot.alert:
        body += _alert_script(snapshot.alert)
    refresh = (
        f'    <meta http-equiv="refresh" content="{REFRESH_SECONDS}" />'
        if pending and not audio_urls
        else ""
    )
    return (
        _PAGE.replace("__REFRESH__", refresh)
        .replace("__TITLE__", APP_TITLE)
        .replace("__STYLE__", _theme_rules() + _STYLE)
        .replace("__BODY__", body)
    )


__all__ = ["APP_TITLE", "render_page", "render_view"]
