import unittest

from headstart.controller import (
    AppMode,
    AppSnapshot,
    CoursesView,
    ExploreView,
    HomeView,
    ProfileView,
    SavedView,
    SummaryView,
)
from headstart.models import BookSummary, DailyChallenge, GrowthPlan, GrowthStep
from headstart.views import render_page, render_view


def _summary() -> BookSummary:
    return BookSummary(
        id="abc123xyz",
        title="Hábitos <Atómicos>",
        author="James Clear",
        key_insights=("Uno", "Dos"),
        main_takeaway="Sistemas",
        reading_time=15,
        category="Productividad",
    )


def _plan() -> GrowthPlan:
    return GrowthPlan(
        daily_focus="Constancia",
        steps=(GrowthStep(title="Lee", description="Un capítulo", duration="15 min"),),
        suggested_books=("Atomic Habits", "Deep Work"),
        challenge=DailyChallenge(title="Sin móvil", action="Apágalo", benefit="Foco"),
    )


class TestRenderPage(unittest.TestCase):
    def test_onboarding_disables_start_without_selection(self) -> None:
        html = render_page(AppSnapshot(mode=AppMode.ONBOARDING, view=HomeView()))

        self.assertIn('id="onboardingView"', html)
        self.assertIn('action="/api/start"', html)
        self.assertIn(' disabled>Comenzar Experiencia', html)
        self.assertNotIn('http-equiv="refresh"', html)
        self.assertIn("--primary: #3B82F6;", html)

    def test_onboarding_marks_selected_interests(self) -> None:
        html = render_page(
            AppSnapshot(
                mode=AppMode.ONBOARDING,
                view=HomeView(),
                selected_interests=("finance",),
            )
        )

        self.assertIn('class="card selected"', html)
        self.assertNotIn(' disabled>Comenzar Experiencia', html)

    def test_loading_shows_only_message_and_refreshes(self) -> None:
        html = render_page(
            AppSnapshot(
                mode=AppMode.LOADING,
                view=HomeView(),
                plan=_plan(),
                loading_message='Resumiendo "Deep Work"...',
            )
        )

        self.assertIn('id="loadingView"', html)
        self.assertIn("Resumiendo &quot;Deep Work&quot;...", html)
        self.assertNotIn('id="homeView"', html)
        self.assertIn('http-equiv="refresh"', html)

    def test_home_lists_plan_sections(self) -> None:
        html = render_page(AppSnapshot(mode=AppMode.MAIN, view=HomeView(), plan=_plan()))

        for marker in ('id="dailyFocus"', 'id="dailyChallenge"', 'id="suggestedBooks"'):
            self.assertIn(marker, html)
        self.assertIn('value="Deep Work"', html)
        self.assertIn('class="nav-item active"', html)

    def test_summary_escapes_content_and_shows_save_state(self) -> None:
        summary = _summary()
        unsaved = render_page(
            AppSnapshot(mode=AppMode.MAIN, view=SummaryView(summary), active_summary=summary)
        )
        saved = render_page(
            AppSnapshot(
                mode=AppMode.MAIN,
                view=SummaryView(summary),
                active_summary=summary,
                saved_books=(summary,),
            )
        )

        self.assertIn("Hábitos &lt;Atómicos&gt;", unsaved)
        self.assertNotIn("<Atómicos>", unsaved)
        self.assertIn("☆ Guardar", unsaved)
        self.assertIn("★ Guardado", saved)
        self.assertIn("▶ ESCUCHAR", unsaved)

    def test_summary_audio_button_shows_loading(self) -> None:
        summary = _summary()
        html = render_page(
            AppSnapshot(
                mode=AppMode.MAIN,
                view=SummaryView(summary),
                active_summary=summary,
                is_audio_loading=True,
            )
        )

        self.assertIn("Cargando...", html)
        self.assertIn('http-equiv="refresh"', html)

    def test_page_with_new_clips_does_not_reload(self) -> None:
        html = render_page(
            AppSnapshot(mode=AppMode.MAIN, view=HomeView(), is_audio_loading=True),
            ["/media/audio/clip-0002.wav"],
        )

        self.assertNotIn('http-equiv="refresh"', html)

    def test_loading_page_with_new_clips_reloads_when_they_end(self) -> None:
        html = render_page(
            AppSnapshot(mode=AppMode.LOADING, view=HomeView()),
            ["/media/audio/clip-0003.wav"],
        )

        self.assertNotIn('http-equiv="refresh"', html)
        self.assertIn('onended="location.reload()"', html)

    def test_idle_page_clips_do_not_reload(self) -> None:
        html = render_page(
            AppSnapshot(mode=AppMode.MAIN, view=HomeView()),
            ["/media/audio/clip-0004.wav"],
        )

        self.assertNotIn("onended", html)
        self.assertNotIn('http-equiv="refresh"', html)

    def test_explore_shows_topic_loading_and_results(self) -> None:
        loading = render_view(
            AppSnapshot(mode=AppMode.MAIN, view=ExploreView(), is_topic_loading=True)
        )
        loaded = render_view(
            AppSnapshot(
                mode=AppMode.MAIN,
                view=ExploreView(),
                topic="Finanzas",
                topic_recommendations=("Uno", "Dos"),
            )
        )

        self.assertIn('id="topicLoading"', loading)
        self.assertNotIn('id="topicBooks"', loading)
        self.assertIn('id="topicBooks"', loaded)
        self.assertIn('value="Dos"', loaded)

    def test_course_paths_use_their_tint(self) -> None:
        html = render_view(AppSnapshot(mode=AppMode.MAIN, view=CoursesView()))

        self.assertIn('color:#16a34a', html)
        self.assertIn('value="Inversiones para Principiantes"', html)

    def test_saved_view_empty_and_filled(self) -> None:
        empty = render_view(AppSnapshot(mode=AppMode.MAIN, view=SavedView()))
        filled = render_view(
            AppSnapshot(mode=AppMode.MAIN, view=SavedView(), saved_books=(_summary(),))
        )

        self.assertIn("Todavía no has guardado ningún resumen.", empty)
        self.assertIn('action="/api/open-saved"', filled)
        self.assertIn('action="/api/remove-saved"', filled)

    def test_profile_lists_interest_labels(self) -> None:
        html = render_view(
            AppSnapshot(
                mode=AppMode.MAIN,
                view=ProfileView(),
                selected_interests=("finance", "productivity"),
            )
        )

        self.assertIn("Productividad, Finanzas", html)
        self.assertIn('action="/api/reset"', html)

    def test_audio_clips_and_alert_are_embedded(self) -> None:
        html = render_page(
            AppSnapshot(mode=AppMode.MAIN, view=HomeView(), alert="Error al generar audio."),
            ["/media/audio/clip-0001.wav"],
        )

        self.assertIn('<audio autoplay src="/media/audio/clip-0001.wav"', html)
        self.assertIn('alert("Error al generar audio.")', html)
        self.assertIn("/api/dismiss-alert", html)


if __name__ == "__main__":
    unittest.main()
