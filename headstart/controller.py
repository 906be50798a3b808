"""View-state controller for the HeadStart app.

The controller owns every piece of shared state: the coarse application
mode, the active view, the selected interests and the content slots. The
presentation layer only reads immutable snapshots and dispatches intents.

Every generation intent comes in two halves. ``begin_*`` performs the
synchronous transition (for example into ``AppMode.LOADING``) and returns a
job; the job blocks on the gateway outside the state lock and applies the
result, so servers run it on a worker thread. The plain method names run
both halves inline. Each dispatched request takes a ticket from a
single increasing counter; a response is applied only when its ticket is
still the latest issued for its content slot, and only the latest loading
request may move the app out of ``AppMode.LOADING``. Superseded requests
still run to completion and are discarded when they resolve.
"""
from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Optional, TypeVar, Union

from headstart.audio import AudioOutput
from headstart.catalog import interest_by_id
from headstart.gemini import GenerationGateway
from headstart.models import BookSummary, Course, GrowthPlan, HistoricalFigure
from headstart.storage import SavedBooks
from headstart.tts import SpeechSettings, play_speech

T = TypeVar("T")
Job = Callable[[], bool]

DEFAULT_LOADING_MESSAGE = "Diseñando tu camino..."
AUDIO_ERROR_MESSAGE = "Error al generar audio."

SLOT_PLAN = "plan"
SLOT_SUMMARY = "summary"
SLOT_HISTORY = "history"
SLOT_COURSE = "course"
SLOT_TOPICS = "topics"
SLOT_AUDIO = "audio"


class InvalidTransition(ValueError):
    """Raised when an intent is not allowed in the current state."""


def _run(job: Optional[Job]) -> bool:
    return job() if job is not None else False


class AppMode(str, Enum):
    ONBOARDING = "onboarding"
    LOADING = "loading"
    MAIN = "main"


@dataclass(frozen=True)
class HomeView:
    name: ClassVar[str] = "home"


@dataclass(frozen=True)
class ExploreView:
    name: ClassVar[str] = "explore"


@dataclass(frozen=True)
class ProfileView:
    name: ClassVar[str] = "profile"


@dataclass(frozen=True)
class SavedView:
    name: ClassVar[str] = "saved"


@dataclass(frozen=True)
class HistoryView:
    name: ClassVar[str] = "history"


@dataclass(frozen=True)
class CoursesView:
    name: ClassVar[str] = "courses"


@dataclass(frozen=True)
class SummaryView:
    summary: BookSummary
    name: ClassVar[str] = "summary"


@dataclass(frozen=True)
class HistoryDetailView:
    figure: HistoricalFigure
    name: ClassVar[str] = "history-detail"


@dataclass(frozen=True)
class CourseDetailView:
    course: Course
    name: ClassVar[str] = "course-detail"


View = Union[
    HomeView,
    ExploreView,
    ProfileView,
    SavedView,
    HistoryView,
    CoursesView,
    SummaryView,
    HistoryDetailView,
    CourseDetailView,
]

LATERAL_VIEWS: dict[str, View] = {
    view.name: view
    for view in (
        HomeView(),
        ExploreView(),
        HistoryView(),
        CoursesView(),
        ProfileView(),
        SavedView(),
    )
}

PARENT_VIEWS: dict[str, View] = {
    SummaryView.name: HomeView(),
    HistoryDetailView.name: HistoryView(),
    CourseDetailView.name: CoursesView(),
}


@dataclass(frozen=True)
class AppSnapshot:
    mode: AppMode
    view: View
    selected_interests: tuple[str, ...] = ()
    plan: Optional[GrowthPlan] = None
    active_summary: Optional[BookSummary] = None
    active_history: Optional[HistoricalFigure] = None
    active_course: Optional[Course] = None
    loading_message: str = DEFAULT_LOADING_MESSAGE
    topic: Optional[str] = None
    topic_recommendations: tuple[str, ...] = ()
    is_topic_loading: bool = False
    is_audio_loading: bool = False
    alert: Optional[str] = None
    saved_books: tuple[BookSummary, ...] = field(default_factory=tuple)

    def is_saved(self, book_id: str) -> bool:
        return any(book.id == book_id for book in self.saved_books)

    def to_dict(self) -> dict[str, Any]:
        def _dump(record: Any) -> Any:
            return record.to_dict() if record is not None else None

        return {
            "mode": self.mode.value,
            "view": self.view.name,
            "selectedInterests": list(self.selected_interests),
            "plan": _dump(self.plan),
            "activeSummary": _dump(self.active_summary),
            "activeHistory": _dump(self.active_history),
            "activeCourse": _dump(self.active_course),
            "loadingMessage": self.loading_message,
            "topic": self.topic,
            "topicRecommendations": list(self.topic_recommendations),
            "isTopicLoading": self.is_topic_loading,
            "isAudioLoading": self.is_audio_loading,
            "alert": self.alert,
            "savedBooks": [book.to_dict() for book in self.saved_books],
        }


class ViewStateController:
    def __init__(
        self,
        gateway: GenerationGateway,
        saved_books: SavedBooks,
        audio_output: AudioOutput,
        speech_settings: Optional[SpeechSettings] = None,
        verbose: bool = True,
    ) -> None:
        self.gateway = gateway
        self.saved_books = saved_books
        self.audio_output = audio_output
        self.speech_settings = speech_settings or SpeechSettings()
        self.verbose = verbose

        self.mode = AppMode.ONBOARDING
        self.view: View = HomeView()
        self.selected_interests: list[str] = []
        self.plan: Optional[GrowthPlan] = None
        self.active_summary: Optional[BookSummary] = None
        self.active_history: Optional[HistoricalFigure] = None
        self.active_course: Optional[Course] = None
        self.loading_message = DEFAULT_LOADING_MESSAGE
        self.topic: Optional[str] = None
        self.topic_recommendations: list[str] = []
        self.is_topic_loading = False
        self.is_audio_loading = False
        self.alert: Optional[str] = None

        self._lock = threading.RLock()
        self._tickets = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._loading_ticket: Optional[int] = None
        self._loading_fallback: Optional[AppMode] = None

    def _log(self, message: str) -> None:
        if self.verbose:
            print(f"[controller] {message}")

    def _require_mode(self, *modes: AppMode) -> None:
        if self.mode not in modes:
            raise InvalidTransition(f"Not allowed while in {self.mode.value} mode.")

    def _issue(self, slot: str) -> int:
        ticket = next(self._tickets)
        self._latest[slot] = ticket
        return ticket

    def _is_latest(self, slot: str, ticket: int) -> bool:
        return self._latest.get(slot) == ticket

    def _require_content_mode(self) -> None:
        self._require_mode(AppMode.MAIN, AppMode.LOADING)
        if self.mode == AppMode.LOADING and self._loading_fallback != AppMode.MAIN:
            raise InvalidTransition("Wait for the growth plan first.")

    def snapshot(self) -> AppSnapshot:
        with self._lock:
            return AppSnapshot(
                mode=self.mode,
                view=self.view,
                selected_interests=tuple(self.selected_interests),
                plan=self.plan,
                active_summary=self.active_summary,
                active_history=self.active_history,
                active_course=self.active_course,
                loading_message=self.loading_message,
                topic=self.topic,
                topic_recommendations=tuple(self.topic_recommendations),
                is_topic_loading=self.is_topic_loading,
                is_audio_loading=self.is_audio_loading,
                alert=self.alert,
                saved_books=tuple(self.saved_books),
            )

    def _start_loading_request(
        self,
        slot: str,
        message: str,
        fetch: Callable[[], T],
        apply: Callable[[T], None],
        fallback_mode: AppMode,
    ) -> Job:
        with self._lock:
            ticket = self._issue(slot)
            self._loading_ticket = ticket
            self._loading_fallback = fallback_mode
            self.mode = AppMode.LOADING
            self.loading_message = message

        def job() -> bool:
            try:
                result = fetch()
            except Exception as exc:
                self._log(f"{slot.capitalize()} request failed: {exc}")
                with self._lock:
                    if self._loading_ticket == ticket:
                        self._loading_ticket = None
                        self.mode = fallback_mode
                return False
            with self._lock:
                if not self._is_latest(slot, ticket):
                    self._log(f"Discarded superseded {slot} response.")
                    return False
                apply(result)
                if self._loading_ticket == ticket:
                    self._loading_ticket = None
                    self.mode = AppMode.MAIN
            return True

        return job

    # Onboarding

    def toggle_interest(self, interest_id: str) -> bool:
        """Flip the selection of an interest. Returns True when now selected."""
        if interest_by_id(interest_id) is None:
            raise InvalidTransition(f"Unknown interest '{interest_id}'.")
        with self._lock:
            self._require_mode(AppMode.ONBOARDING)
            if interest_id in self.selected_interests:
                self.selected_interests.remove(interest_id)
                return False
            self.selected_interests.append(interest_id)
            return True

    def begin_growth(self) -> Optional[Job]:
        with self._lock:
            self._require_mode(AppMode.ONBOARDING)
            if not self.selected_interests:
                return None
            interests = list(self.selected_interests)

            def apply(plan: GrowthPlan) -> None:
                self.plan = plan
                self.view = HomeView()

            return self._start_loading_request(
                SLOT_PLAN,
                "Preparando tu plan de 15 minutos...",
                lambda: self.gateway.generate_growth_plan(interests),
                apply,
                AppMode.ONBOARDING,
            )

    def start_growth(self) -> bool:
        return _run(self.begin_growth())

    # Content fetches

    def begin_book_search(self, query: str) -> Optional[Job]:
        if not query.strip():
            return None

        def apply(summary: BookSummary) -> None:
            self.active_summary = summary
            self.view = SummaryView(summary)

        with self._lock:
            self._require_content_mode()
            return self._start_loading_request(
                SLOT_SUMMARY,
                f'Resumiendo "{query}"...',
                lambda: self.gateway.generate_book_summary(query),
                apply,
                AppMode.MAIN,
            )

    def search_book(self, query: str) -> bool:
        return _run(self.begin_book_search(query))

    def begin_history_search(self, name: str) -> Optional[Job]:
        if not name.strip():
            return None

        def apply(figure: HistoricalFigure) -> None:
            self.active_history = figure
            self.view = HistoryDetailView(figure)

        with self._lock:
            self._require_content_mode()
            return self._start_loading_request(
                SLOT_HISTORY,
                f"Consultando la sabiduría de {name}...",
                lambda: self.gateway.generate_historical_figure(name),
                apply,
                AppMode.MAIN,
            )

    def search_history(self, name: str) -> bool:
        return _run(self.begin_history_search(name))

    def begin_course(self, topic: str) -> Optional[Job]:
        if not topic.strip():
            return None

        def apply(course: Course) -> None:
            self.active_course = course
            self.view = CourseDetailView(course)

        with self._lock:
            self._require_content_mode()
            return self._start_loading_request(
                SLOT_COURSE,
                f"Diseñando curso intensivo sobre {topic}...",
                lambda: self.gateway.generate_course(topic),
                apply,
                AppMode.MAIN,
            )

    def create_course(self, topic: str) -> bool:
        return _run(self.begin_course(topic))

    def begin_topic(self, topic: str) -> Optional[Job]:
        """Fill the recommendation list in place without touching mode or view."""
        if not topic.strip():
            return None
        with self._lock:
            self._require_mode(AppMode.MAIN, AppMode.LOADING)
            ticket = self._issue(SLOT_TOPICS)
            self.topic = topic
            self.topic_recommendations = []
            self.is_topic_loading = True

        def job() -> bool:
            try:
                books = self.gateway.get_books_by_topic(topic)
            except Exception as exc:
                self._log(f"Topic request failed: {exc}")
                with self._lock:
                    if self._is_latest(SLOT_TOPICS, ticket):
                        self.is_topic_loading = False
                return False
            with self._lock:
                if not self._is_latest(SLOT_TOPICS, ticket):
                    self._log("Discarded superseded topics response.")
                    return False
                self.topic_recommendations = list(books)
                self.is_topic_loading = False
            return True

        return job

    def explore_topic(self, topic: str) -> bool:
        return _run(self.begin_topic(topic))

    # Audio

    def begin_audio(self, text: str) -> Job:
        with self._lock:
            ticket = self._issue(SLOT_AUDIO)
            self.is_audio_loading = True

        def job() -> bool:
            try:
                play_speech(text, self.gateway, self.audio_output, self.speech_settings)
            except Exception as exc:
                self._log(f"Audio request failed: {exc}")
                with self._lock:
                    self.alert = AUDIO_ERROR_MESSAGE
                    if self._is_latest(SLOT_AUDIO, ticket):
                        self.is_audio_loading = False
                return False
            with self._lock:
                if self._is_latest(SLOT_AUDIO, ticket):
                    self.is_audio_loading = False
            return True

        return job

    def play_audio(self, text: str) -> bool:
        return _run(self.begin_audio(text))

    def begin_summary_audio(self) -> Job:
        with self._lock:
            summary = self.active_summary
        if summary is None:
            raise InvalidTransition("No active summary to read.")
        return self.begin_audio(
            f"{summary.title}. Por {summary.author}. "
            f"Idea principal: {summary.main_takeaway}"
        )

    def play_summary_audio(self) -> bool:
        return _run(self.begin_summary_audio())

    def dismiss_alert(self) -> None:
        with self._lock:
            self.alert = None

    # Navigation

    def navigate(self, view_name: str) -> View:
        view = LATERAL_VIEWS.get(view_name)
        if view is None:
            raise InvalidTransition(f"Cannot navigate to '{view_name}'.")
        with self._lock:
            self._require_mode(AppMode.MAIN)
            self.view = view
            return view

    def back(self) -> View:
        with self._lock:
            self._require_mode(AppMode.MAIN)
            self.view = PARENT_VIEWS.get(self.view.name, HomeView())
            return self.view

    def reset_experience(self) -> None:
        """Return to onboarding and discard the plan.

        Selected interests are kept, so the onboarding grid comes back with
        the previous choices still ticked.
        """
        with self._lock:
            self._require_mode(AppMode.MAIN)
            self._latest.clear()
            self._loading_ticket = None
            self.topic = None
            self.is_topic_loading = False
            self.topic_recommendations = []
            self.is_audio_loading = False
            self.plan = None
            self.view = HomeView()
            self.mode = AppMode.ONBOARDING

    # Saved collection

    def toggle_saved(self, book_id: Optional[str] = None) -> bool:
        """Save or unsave a summary. Returns True when the book is now saved."""
        with self._lock:
            if book_id is not None and book_id in self.saved_books:
                self.saved_books.remove(book_id)
                return False
            summary = self.active_summary
            if summary is None or (book_id is not None and summary.id != book_id):
                raise InvalidTransition("Only the active summary can be saved.")
            return self.saved_books.toggle(summary)

    def remove_saved(self, book_id: str) -> None:
        with self._lock:
            if not self.saved_books.remove(book_id):
                raise InvalidTransition(f"Book '{book_id}' is not saved.")

    def open_saved(self, book_id: str) -> SummaryView:
        with self._lock:
            self._require_mode(AppMode.MAIN)
            summary = self.saved_books.get(book_id)
            if summary is None:
                raise InvalidTransition(f"Book '{book_id}' is not saved.")
            self.active_summary = summary
            self.view = SummaryView(summary)
            return self.view


__all__ = [
    "AppMode",
    "AppSnapshot",
    "CourseDetailView",
    "CoursesView",
    "ExploreView",
    "HistoryDetailView",
    "HistoryView",
    "HomeView",
    "InvalidTransition",
    "LATERAL_VIEWS",
    "ProfileView",
    "SavedView",
    "SummaryView",
    "View",
    "ViewStateController",
]
