"""Tests for the search screen: query entry, results, details and installs."""

from depman.app.events import KeyPressed, PackageDetailReady, SearchResultsReady
from depman.app.screens.search import Phase
from depman.app.state import Screen
from depman.domain.exceptions import NetworkError
from depman.domain.models import SearchResult
from tests.conftest import FakeIndex, drain, press


class FailingIndex(FakeIndex):
    def search(self, query, cancel=None):
        raise NetworkError("connection refused")


class BrokenDetailIndex(FakeIndex):
    def get_package_detail(self, name, cancel=None):
        raise TypeError("object of type 'int' has no len()")


def open_search(controller, query: str = ""):
    press(controller, "s", *query)
    return controller.search


class TestQueryEntry:
    def test_typing_builds_query(self, controller):
        search = open_search(controller, "flask")

        assert controller.state.screen is Screen.SEARCH
        assert search.query == "flask"
        assert search.phase is Phase.INPUT

    def test_quit_and_help_keys_are_typed(self, controller):
        search = open_search(controller, "q?")

        assert search.query == "q?"
        assert not controller.state.should_quit
        assert controller.state.screen is Screen.SEARCH

    def test_backspace(self, controller):
        open_search(controller, "flaskk")
        press(controller, "backspace")

        assert controller.search.query == "flask"

    def test_empty_query_does_not_search(self, controller, fake_index):
        open_search(controller)

        assert press(controller, "enter") == []
        assert not [call for call in fake_index.calls if call[0] == "search"]

    def test_search_moves_to_results(self, controller, fake_index):
        open_search(controller, "flask")
        press(controller, "enter")

        search = controller.search
        assert ("search", "flask") in fake_index.calls
        assert search.phase is Phase.RESULTS
        assert [r.name for r in search.results] == ["flask"]
        assert not search.loading

    def test_search_does_not_set_global_loading(self, controller):
        open_search(controller, "flask")

        commands = controller.handle(KeyPressed("enter"))

        assert [c.name for c in commands] == ["search"]
        assert controller.search.loading
        assert not controller.state.is_loading

    def test_zero_results_stay_on_input(self, controller):
        open_search(controller, "nothing")
        press(controller, "enter")

        search = controller.search
        assert search.phase is Phase.INPUT
        assert search.searched
        assert 'No packages found for "nothing"' in controller.render().plain

    def test_search_error_is_shown(self, controller):
        controller.services.index = FailingIndex()
        open_search(controller, "flask")
        press(controller, "enter")

        assert controller.search.phase is Phase.INPUT
        assert "connection refused" in controller.render().plain

    def test_escape_returns_to_dashboard_and_resets(self, controller):
        search = open_search(controller, "flask")
        cancel = search.cancel

        press(controller, "escape")

        assert controller.state.screen is Screen.DASHBOARD
        assert controller.search.query == ""
        assert cancel.is_set()


class TestStaleResults:
    def test_old_request_is_ignored(self, controller):
        open_search(controller, "flask")
        controller.handle(KeyPressed("enter"))
        current = controller.search.request_id

        controller.handle(SearchResultsReady(current - 1, "fla", (SearchResult("fla", "1.0"),)))

        assert controller.search.loading
        assert controller.search.results == ()

    def test_results_after_leaving_search_are_ignored(self, controller):
        open_search(controller, "flask")
        commands = controller.handle(KeyPressed("enter"))
        press(controller, "escape")

        for command in commands:
            controller.handle(command.execute())

        assert controller.state.screen is Screen.DASHBOARD
        assert controller.search.results == ()

    def test_detail_dropped_after_backing_out(self, controller, fake_index):
        open_search(controller, "flask")
        press(controller, "enter")
        commands = controller.handle(KeyPressed("enter"))
        press(controller, "escape")

        for command in commands:
            controller.handle(command.execute())

        assert controller.search.phase is Phase.INPUT
        assert controller.search.detail is None


class TestDetail:
    def open_detail(self, controller):
        open_search(controller, "flask")
        press(controller, "enter", "enter")
        return controller.search

    def test_detail_view(self, controller):
        search = self.open_detail(controller)

        assert search.phase is Phase.DETAIL
        assert search.detail.name == "flask"
        assert search.version_cursor == 0
        frame = controller.render().plain
        assert "3.0.0 (latest)" in frame
        assert "Armin Ronacher" in frame

    def test_version_cursor_bounds(self, controller):
        search = self.open_detail(controller)

        press(controller, "k")
        assert search.version_cursor == 0
        press(controller, "j", "j", "j", "j")
        assert search.version_cursor == 2

    def test_install_selected_version(self, controller, fake_runner):
        self.open_detail(controller)
        press(controller, "j")

        commands = controller.handle(KeyPressed("enter"))

        assert controller.state.screen is Screen.DASHBOARD
        assert controller.state.is_loading
        assert controller.search.phase is Phase.INPUT

        drain(controller, commands)
        assert ("install", "flask==2.3.3") in fake_runner.calls
        assert controller.state.status_message == "installed flask@2.3.3 ✓"
        assert not controller.state.is_loading

    def test_install_refused_while_loading(self, controller, fake_runner):
        self.open_detail(controller)
        controller.state.is_loading = True

        assert press(controller, "enter") == []
        assert controller.state.screen is Screen.SEARCH
        assert "Busy" in controller.state.status_message

    def test_escape_walks_back(self, controller):
        self.open_detail(controller)

        press(controller, "escape")
        assert controller.search.phase is Phase.RESULTS
        press(controller, "escape")
        assert controller.search.phase is Phase.INPUT
        press(controller, "escape")
        assert controller.state.screen is Screen.DASHBOARD

    def test_results_navigation(self, controller):
        controller.services.index = FakeIndex(
            results={"http": [SearchResult("httpx", "0.27"), SearchResult("httpie", "3.2")]}
        )
        open_search(controller, "http")
        press(controller, "enter", "j", "j")

        assert controller.search.cursor == 1
        press(controller, "k", "k")
        assert controller.search.cursor == 0

    def test_missing_detail_reports_error(self, controller):
        controller.services.index = FakeIndex(results={"ghost": [SearchResult("ghost", "1.0")]})
        open_search(controller, "ghost")
        press(controller, "enter", "enter")

        assert controller.search.phase is Phase.RESULTS
        assert controller.search.error == "Package not found: ghost"


class TestForcedVersionChange:
    def test_enter_on_installed_package_opens_its_versions(self, controller):
        press(controller, "enter")

        search = controller.search
        assert controller.state.screen is Screen.SEARCH
        assert controller.state.pending_version_change is None
        assert search.phase is Phase.DETAIL
        assert search.detail.name == "flask"
        assert search.query == "flask"

    def test_forced_entry_shows_loading_until_detail_arrives(self, controller):
        commands = controller.handle(KeyPressed("enter"))

        assert [c.name for c in commands] == ["fetch_detail"]
        assert controller.search.detail_loading
        assert "Loading package details..." in controller.render().plain

    def test_stale_detail_event_is_ignored(self, controller):
        controller.handle(KeyPressed("enter"))
        detail = controller.services.index.details["flask"]

        controller.handle(PackageDetailReady(controller.search.request_id - 1, "flask", detail))

        assert controller.search.phase is Phase.INPUT
        assert controller.search.detail_loading

    def test_unexpected_detail_failure_is_reported(self, controller):
        controller.services.index = BrokenDetailIndex()

        press(controller, "enter")

        search = controller.search
        assert controller.state.screen is Screen.SEARCH
        assert not search.detail_loading
        assert search.error == "object of type 'int' has no len()"
        assert not controller.state.should_quit
