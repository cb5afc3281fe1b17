"""Tests for dashboard navigation, confirmations and package actions."""

import pytest

from depman.app.commands import Services
from depman.app.controller import Controller
from depman.app.events import KeyPressed, Resized
from depman.app.screens.dashboard import (
    AddingPackage,
    ConfirmAction,
    Confirming,
    Normal,
    ensure_visible,
)
from depman.app.state import Panel, Screen
from depman.domain.exceptions import CommandError
from tests.conftest import FakeIndex, FakeRunner, drain, installed_entries, make_state, press


def build(tmp_path, runner: FakeRunner, height: int = 30) -> Controller:
    ctrl = Controller(make_state(tmp_path), Services(runner=runner, index=FakeIndex()))
    ctrl.handle(Resized(100, height))
    drain(ctrl, ctrl.start())
    return ctrl


def assert_cursor_visible(ctrl: Controller, panel: Panel) -> None:
    position = ctrl.dashboard.panel(panel)
    view_height = ctrl.state.viewable_height()
    assert position.scroll <= position.cursor < position.scroll + view_height


class TestEnsureVisible:
    def test_above_window(self):
        assert ensure_visible(2, 5, 10) == 2

    def test_below_window(self):
        assert ensure_visible(20, 5, 10) == 11

    def test_inside_window(self):
        assert ensure_visible(7, 5, 10) == 5


class TestNavigation:
    def test_initial_load(self, controller):
        state = controller.state
        assert [p.name for p in state.installed] == ["flask", "requests", "rich"]
        assert [p.name for p in state.outdated] == ["flask", "requests"]
        assert not state.is_loading

    def test_move_down_and_up(self, controller):
        press(controller, "j", "down")
        assert controller.dashboard.installed.cursor == 2

        press(controller, "k")
        assert controller.dashboard.installed.cursor == 1

    def test_cursor_stays_in_bounds(self, controller):
        press(controller, "k", "k")
        assert controller.dashboard.installed.cursor == 0

        press(controller, *["j"] * 10)
        assert controller.dashboard.installed.cursor == 2

    def test_jump_to_bottom_and_top(self, controller):
        press(controller, "G")
        assert controller.dashboard.installed.cursor == 2

        press(controller, "g", "g")
        assert controller.dashboard.installed.cursor == 0
        assert isinstance(controller.dashboard.mode, Normal)

    def test_broken_chord_is_consumed(self, controller):
        press(controller, "G")
        press(controller, "g", "j")

        assert controller.dashboard.installed.cursor == 2
        assert isinstance(controller.dashboard.mode, Normal)

    def test_tab_switches_panel(self, controller):
        press(controller, "tab")
        assert controller.state.active_panel is Panel.OUTDATED

        press(controller, "j")
        assert controller.dashboard.outdated.cursor == 1
        assert controller.dashboard.installed.cursor == 0

        press(controller, "tab")
        assert controller.state.active_panel is Panel.INSTALLED

    def test_scrolling_keeps_cursor_visible(self, tmp_path):
        ctrl = build(tmp_path, FakeRunner(installed=installed_entries(50)))
        view_height = ctrl.state.viewable_height()

        press(ctrl, "G")
        assert ctrl.dashboard.installed.cursor == 49
        assert ctrl.dashboard.installed.scroll == 50 - view_height
        assert_cursor_visible(ctrl, Panel.INSTALLED)

        press(ctrl, "g", "g")
        assert ctrl.dashboard.installed.scroll == 0

        for _ in range(4):
            press(ctrl, "ctrl+d")
            assert_cursor_visible(ctrl, Panel.INSTALLED)
        assert ctrl.dashboard.installed.cursor == 4 * (view_height // 2)

        press(ctrl, "ctrl+u")
        assert_cursor_visible(ctrl, Panel.INSTALLED)

    def test_shrinking_terminal_reclamps_scroll(self, tmp_path):
        ctrl = build(tmp_path, FakeRunner(installed=installed_entries(50)), height=60)
        press(ctrl, "G")

        ctrl.handle(Resized(100, 20))

        assert_cursor_visible(ctrl, Panel.INSTALLED)

    def test_shorter_reload_clamps_cursor(self, tmp_path):
        runner = FakeRunner(installed=installed_entries(10))
        ctrl = build(tmp_path, runner)
        press(ctrl, "G")

        runner.installed = installed_entries(3)
        drain(ctrl, ctrl.start())

        assert ctrl.dashboard.installed.cursor == 2

    def test_empty_lists(self, tmp_path):
        ctrl = build(tmp_path, FakeRunner())

        press(ctrl, "j", "G", "d", "tab", "u", "U")

        assert ctrl.dashboard.installed.cursor == 0
        assert isinstance(ctrl.dashboard.mode, Normal)


class TestScreenSwitches:
    @pytest.mark.parametrize("key", ["a", "s", "/"])
    def test_search_keys(self, controller, key):
        press(controller, key)
        assert controller.state.screen is Screen.SEARCH

    def test_enter_opens_version_selection(self, controller, fake_index):
        press(controller, "j", "enter")

        assert controller.state.screen is Screen.SEARCH
        assert ("detail", "requests") in fake_index.calls

    def test_enter_on_outdated_panel_does_nothing(self, controller):
        press(controller, "tab", "enter")
        assert controller.state.screen is Screen.DASHBOARD


class TestConfirmations:
    def test_remove_after_confirmation(self, controller, fake_runner):
        press(controller, "d")
        assert controller.dashboard.mode == Confirming(ConfirmAction.REMOVE, "flask")

        press(controller, "y")

        assert ("uninstall", "flask") in fake_runner.calls
        assert fake_runner.calls[-2:] == [("list", ""), ("outdated", "")]
        assert controller.state.status_message == "uninstalled flask ✓"
        assert not controller.state.is_loading

    def test_confirmation_is_modal(self, controller, fake_runner):
        press(controller, "x", "j", "tab", "G")

        assert controller.dashboard.installed.cursor == 0
        assert controller.state.active_panel is Panel.INSTALLED
        assert isinstance(controller.dashboard.mode, Confirming)
        assert not [call for call in fake_runner.calls if call[0] == "uninstall"]

    @pytest.mark.parametrize("key", ["n", "escape", "q"])
    def test_cancel(self, controller, fake_runner, key):
        press(controller, "d", key)

        assert isinstance(controller.dashboard.mode, Normal)
        assert not controller.state.should_quit
        assert not [call for call in fake_runner.calls if call[0] == "uninstall"]

    def test_update_only_from_outdated_panel(self, controller, fake_runner):
        press(controller, "u")
        assert isinstance(controller.dashboard.mode, Normal)

        press(controller, "tab", "j", "u")
        assert controller.dashboard.mode == Confirming(ConfirmAction.UPDATE, "requests")

        press(controller, "enter")
        assert ("upgrade", "requests") in fake_runner.calls
        assert controller.state.status_message == "updated requests ✓"

    def test_remove_only_from_installed_panel(self, controller):
        press(controller, "tab", "d")
        assert isinstance(controller.dashboard.mode, Normal)

    def test_failed_action_reports_without_reload(self, tmp_path):
        runner = FakeRunner(installed=[{"name": "flask", "version": "1.0"}], failing={"flask"})
        ctrl = build(tmp_path, runner)
        runner.calls.clear()

        press(ctrl, "d", "y")

        assert runner.calls == [("uninstall", "flask")]
        assert ctrl.state.status_message == "Failed: uninstall flask failed"


class TestUpdateAll:
    @pytest.fixture
    def runner(self) -> FakeRunner:
        names = ["alpha", "beta", "gamma"]
        return FakeRunner(
            installed=[{"name": n, "version": "1.0.0"} for n in names],
            outdated=[{"name": n, "version": "1.0.0", "latest_version": "1.1.0"} for n in names],
        )

    def test_all_succeed(self, tmp_path, runner):
        ctrl = build(tmp_path, runner)

        press(ctrl, "U")
        assert ctrl.dashboard.mode == Confirming(ConfirmAction.UPDATE_ALL, "3 packages")
        press(ctrl, "y")

        assert [c for c in runner.calls if c[0] == "upgrade"] == [
            ("upgrade", "alpha"),
            ("upgrade", "beta"),
            ("upgrade", "gamma"),
        ]
        assert ctrl.state.status_message == "updated 3 ✓"

    def test_partial_failure_keeps_going_and_reloads(self, tmp_path, runner):
        runner.failing = {"beta"}
        ctrl = build(tmp_path, runner)
        runner.calls.clear()

        press(ctrl, "U", "y")

        assert runner.calls[:3] == [("upgrade", "alpha"), ("upgrade", "beta"), ("upgrade", "gamma")]
        assert runner.calls[3:] == [("list", ""), ("outdated", "")]
        assert "updated 2, failed 1" in ctrl.state.status_message
        assert "beta" in ctrl.state.status_message

    def test_total_failure_does_not_reload(self, tmp_path, runner):
        runner.failing = {"alpha", "beta", "gamma"}
        ctrl = build(tmp_path, runner)
        runner.calls.clear()

        press(ctrl, "U", "y")

        assert len(runner.calls) == 3
        assert ctrl.state.status_message.startswith("Failed:")

    def test_snapshot_is_taken_on_confirm(self, tmp_path, runner):
        ctrl = build(tmp_path, runner)
        press(ctrl, "U")

        commands = ctrl.handle(KeyPressed("y"))
        ctrl.state.outdated = ()
        drain(ctrl, commands)

        assert len([c for c in runner.calls if c[0] == "upgrade"]) == 3


class TestAddPackage:
    def test_add_by_name(self, controller, fake_runner):
        press(controller, "i")
        assert controller.dashboard.mode == AddingPackage()

        press(controller, *"httpx>=0.27", "enter")

        assert ("install", "httpx>=0.27") in fake_runner.calls
        assert isinstance(controller.dashboard.mode, Normal)
        assert controller.state.status_message == "installed httpx>=0.27 ✓"

    def test_quit_and_help_keys_are_typed(self, controller):
        press(controller, "i", "q", "?")

        assert controller.dashboard.mode == AddingPackage("q?")
        assert not controller.state.should_quit
        assert controller.state.screen is Screen.DASHBOARD

    def test_backspace(self, controller):
        press(controller, "i", "a", "b", "backspace")
        assert controller.dashboard.mode == AddingPackage("a")

    def test_invalid_spec_is_rejected(self, controller, fake_runner):
        press(controller, "i", *"flask;rm", "enter")

        assert isinstance(controller.dashboard.mode, AddingPackage)
        assert "invalid" in controller.state.status_message.lower()
        assert not [call for call in fake_runner.calls if call[0] == "install"]

    def test_escape_cancels(self, controller, fake_runner):
        press(controller, "i", "x", "escape")

        assert isinstance(controller.dashboard.mode, Normal)
        assert not [call for call in fake_runner.calls if call[0] == "install"]

    def test_empty_enter_does_nothing(self, controller):
        assert press(controller, "i", "enter") == []
        assert isinstance(controller.dashboard.mode, AddingPackage)


class TestLoadingGuard:
    @pytest.mark.parametrize("key", ["d", "x", "U", "i"])
    def test_destructive_keys_ignored_while_loading(self, controller, key):
        controller.state.is_loading = True

        press(controller, key)

        assert isinstance(controller.dashboard.mode, Normal)

    def test_navigation_still_works_while_loading(self, controller):
        controller.state.is_loading = True

        press(controller, "j")

        assert controller.dashboard.installed.cursor == 1

    def test_commands_set_loading(self, controller):
        commands = controller.handle(KeyPressed("d")) + controller.handle(KeyPressed("y"))

        assert [c.name for c in commands] == ["uninstall"]
        assert controller.state.is_loading

    def test_load_failure_is_reported(self, tmp_path):
        runner = FakeRunner()
        runner.list_error = CommandError("pip exploded")

        ctrl = build(tmp_path, runner)

        assert ctrl.state.status_message == "Failed to load packages: pip exploded"
        assert not ctrl.state.is_loading
