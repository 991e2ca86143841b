"""Tests for the dashboard state machine, driven through a recording surface."""

import pytest

from conftest import DEGRADED, HEALTHY
from hexcore_cli.controller import EXIT_MESSAGE
from hexcore_cli.models import SystemStatus
from hexcore_cli.services.api import ApiConnectionError
from hexcore_cli.session import MAX_SELECTION, MIN_SELECTION, TimerTick, View, clamp_selection


def recording_views():
    """Six views that draw once and return on the first key they receive."""
    invoked: list[int] = []

    def make(number):
        async def view(surface, api):
            invoked.append(number)
            surface.show_text(f"view {number}", "body")
            await surface.wait_for_key()

        return view

    return {n: make(n) for n in range(MIN_SELECTION, MAX_SELECTION + 1)}, invoked


async def started(make_harness, *statuses, **kwargs):
    harness = make_harness(*statuses, **kwargs)
    await harness.controller.start()
    return harness


# ============ selection ============


@pytest.mark.parametrize("value,expected", [(-3, 1), (0, 1), (1, 1), (4, 4), (6, 6), (7, 6), (100, 6)])
def test_clamp_selection_stays_within_menu(value, expected):
    assert clamp_selection(value) == expected


class TestNavigation:
    async def test_up_and_down_are_clamped(self, make_harness):
        harness = await started(make_harness)
        harness.press("up")
        assert harness.session.selection == 1
        harness.press(*["down"] * 10)
        assert harness.session.selection == MAX_SELECTION
        harness.press("k")
        assert harness.session.selection == MAX_SELECTION - 1
        assert harness.surface.called("update_selection")[-1] == (MAX_SELECTION - 1,)

    async def test_unbound_keys_are_ignored_in_menu(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("x", "9", "0")
        assert harness.session.selection == 1
        assert harness.session.in_menu
        assert invoked == []

    async def test_digit_selects_and_enters_view(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("4")
        await harness.until(lambda: invoked == [4])
        assert harness.session.view is View.ACCOUNTS
        assert harness.session.selection == 4
        assert len(harness.surface.called("clear")) == 1


class TestSelectGuard:
    async def test_select_refused_while_view_active(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        assert harness.controller.select(2) is True
        assert harness.controller.select(3) is False
        assert harness.session.view is View.HEADS

    async def test_burst_of_selects_spawns_one_view(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("1", "2", "3")
        await harness.settle()
        assert invoked == [1]
        assert harness.session.in_menu
        assert harness.session.suppress_next is False


# ============ returning from a view ============


class TestDismissSuppression:
    async def test_double_enter_returns_to_menu_without_reentry(self, make_harness):
        """Selecting 6 then pressing Enter twice lands back in the menu with no second view."""
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("6", "enter", "enter")
        await harness.settle()

        assert invoked == [6]
        assert harness.session.view is View.MENU
        assert harness.session.suppress_next is False
        assert len(harness.surface.called("clear")) == 1

    async def test_first_key_after_dismiss_is_swallowed(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("6")
        await harness.until(lambda: invoked == [6])
        harness.press("enter")
        await harness.settle()
        assert harness.session.in_menu
        assert harness.session.suppress_next is True

        harness.press("enter")
        assert harness.session.suppress_next is False
        assert harness.session.in_menu

        harness.press("down")
        assert harness.session.selection == MAX_SELECTION
        harness.press("up")
        assert harness.session.selection == MAX_SELECTION - 1

    async def test_unbound_key_does_not_consume_suppression(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("5")
        await harness.until(lambda: invoked == [5])
        harness.press("x")
        await harness.settle()
        harness.press("z")
        assert harness.session.suppress_next is True

    async def test_menu_rerendered_after_view(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("2", "enter")
        await harness.settle()
        assert len(harness.surface.called("render_menu")) == 2
        assert harness.api.status_calls == 2

    async def test_menu_screen_restored_before_refetch(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        shown_at_fetch: list[int] = []
        harness.api.on_status = lambda: shown_at_fetch.append(len(harness.surface.called("show_menu_screen")))
        harness.press("3")
        await harness.until(lambda: invoked == [3])
        harness.press("x")
        await harness.settle()

        assert shown_at_fetch == [1]
        (status, selection, last_update), = harness.surface.called("show_menu_screen")
        assert status == HEALTHY
        assert selection == 3
        assert last_update is not None

    async def test_view_crash_still_returns_to_menu(self, make_harness):
        async def broken(surface, api):
            raise RuntimeError("boom")

        harness = await started(make_harness, views={1: broken})
        harness.press("1")
        await harness.settle()
        assert harness.session.in_menu
        assert harness.surface.called("show_error")


# ============ menu rendering ============


class TestRenderMenu:
    async def test_loading_wraps_successful_fetch(self, make_harness):
        harness = await started(make_harness)
        assert [event for event, _ in harness.surface.loading_events] == ["attach", "detach"]
        (status, selection, last_update), = harness.surface.called("render_menu")
        assert status == HEALTHY
        assert selection == 1
        assert last_update is not None
        assert harness.session.last_snapshot == HEALTHY

    async def test_initial_failure_exits_with_error(self, make_harness):
        harness = await started(make_harness, ApiConnectionError("Cannot connect to http://hexcore.test"))
        assert [event for event, _ in harness.surface.loading_events] == ["attach", "detach"]
        assert harness.surface.exit_args == (1, "Error: Cannot connect to http://hexcore.test")
        assert harness.surface.called("show_error") == [("Cannot connect to http://hexcore.test",)]
        assert harness.surface.timers == []
        assert harness.controller.closed

    async def test_later_failure_retries_instead_of_exiting(self, make_harness):
        harness = await started(make_harness, HEALTHY, ApiConnectionError("Cannot connect"), DEGRADED)
        await harness.controller.render_menu()

        assert harness.surface.exit_args is None
        assert harness.surface.called("show_error") == [("Cannot connect",)]
        assert harness.session.last_snapshot == DEGRADED
        events = [event for event, _ in harness.surface.loading_events]
        assert events == ["attach", "detach"] * 3

    async def test_quiet_refresh_failure_is_silent(self, make_harness):
        harness = await started(make_harness, HEALTHY, ApiConnectionError("Cannot connect"))
        await harness.controller.render_menu(quiet=True)
        assert harness.surface.called("show_error") == []
        assert harness.surface.exit_args is None
        assert harness.session.last_snapshot == HEALTHY


# ============ timers ============


class TestTimers:
    async def test_start_registers_both_timers(self, make_harness):
        harness = await started(make_harness)
        intervals = sorted(timer.interval for timer in harness.surface.timers)
        assert intervals == [5.0, 30.0]

    async def test_unchanged_poll_does_not_redraw(self, make_harness):
        harness = await started(make_harness, HEALTHY)
        harness.controller.handle(TimerTick.STATUS_POLL)
        await harness.settle()
        assert harness.api.status_calls == 2
        assert harness.surface.called("update_status") == []
        assert len(harness.surface.called("render_menu")) == 1

    async def test_changed_poll_patches_status_once(self, make_harness):
        harness = await started(make_harness, HEALTHY, DEGRADED)
        harness.controller.handle(TimerTick.STATUS_POLL)
        await harness.settle()
        harness.controller.handle(TimerTick.STATUS_POLL)
        await harness.settle()

        updates = harness.surface.called("update_status")
        assert len(updates) == 1
        assert updates[0][0] == DEGRADED
        assert harness.session.last_snapshot == DEGRADED
        assert len(harness.surface.called("render_menu")) == 1

    async def test_poll_failure_is_swallowed(self, make_harness):
        harness = await started(make_harness, HEALTHY, ApiConnectionError("Cannot connect"))
        harness.controller.handle(TimerTick.STATUS_POLL)
        await harness.settle()
        assert harness.session.poll_in_flight is False
        assert harness.surface.called("show_error") == []
        assert harness.session.last_snapshot == HEALTHY

    async def test_overlapping_polls_fetch_once(self, make_harness):
        harness = await started(make_harness)
        harness.controller.handle(TimerTick.STATUS_POLL)
        harness.controller.handle(TimerTick.STATUS_POLL)
        await harness.settle()
        assert harness.api.status_calls == 2

    async def test_full_refresh_redraws_menu(self, make_harness):
        harness = await started(make_harness, HEALTHY, DEGRADED)
        harness.controller.handle(TimerTick.FULL_REFRESH)
        await harness.settle()
        renders = harness.surface.called("render_menu")
        assert len(renders) == 2
        assert renders[-1][0] == DEGRADED

    async def test_ticks_are_ignored_inside_a_view(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("6")
        await harness.until(lambda: invoked == [6])
        calls_before = harness.api.status_calls
        tasks_before = len(harness.tasks)

        for timer in harness.surface.timers:
            timer.fire()

        assert harness.api.status_calls == calls_before
        assert len(harness.tasks) == tasks_before

    async def test_poll_landing_after_leaving_menu_is_discarded(self, make_harness):
        harness = await started(make_harness, HEALTHY, DEGRADED)

        def leave_menu():
            harness.session.view = View.STATUS

        harness.api.on_status = leave_menu
        harness.controller.handle(TimerTick.STATUS_POLL)
        await harness.settle()

        assert harness.surface.called("update_status") == []
        assert harness.session.last_snapshot == HEALTHY

    async def test_apply_polled_status_outside_menu(self, make_harness):
        harness = await started(make_harness)
        harness.session.view = View.NODES
        changed = SystemStatus(running_nodes=9, running_heads=9, total_heads=9, status="healthy")
        assert harness.controller.apply_polled_status(changed) is False
        assert harness.session.last_snapshot == HEALTHY


# ============ shutdown ============


class TestShutdown:
    @pytest.mark.parametrize("key", ["q", "escape", "ctrl+c"])
    async def test_quit_keys_stop_timers_and_exit(self, make_harness, key):
        harness = await started(make_harness)
        harness.press(key)
        assert all(timer.stopped for timer in harness.surface.timers)
        assert harness.surface.exit_args == (0, EXIT_MESSAGE)
        assert harness.session.full_refresh_timer is None
        assert harness.session.status_poll_timer is None

    async def test_quit_works_inside_a_view(self, make_harness):
        views, invoked = recording_views()
        harness = await started(make_harness, views=views)
        harness.press("3")
        await harness.until(lambda: invoked == [3])
        harness.press("q")
        assert harness.surface.exit_args == (0, EXIT_MESSAGE)

    async def test_events_after_shutdown_are_ignored(self, make_harness):
        harness = await started(make_harness)
        harness.controller.shutdown()
        harness.press("down")
        harness.controller.handle(TimerTick.STATUS_POLL)
        assert harness.session.selection == 1
        assert harness.tasks == []
