"""Unit tests for editors.polling module."""

import asyncio
from unittest.mock import Mock

import pytest

from src.editors.polling import SelectionPoller


class TestSelectionPollerWithoutLoop:
    """Without a running event loop the poller stays host-driven."""

    def test_start_without_loop_is_running_but_not_scheduled(self):
        check = Mock()
        poller = SelectionPoller(check, 0.01)

        poller.start()

        assert poller.is_running is True
        assert poller.is_scheduled is False
        check.assert_not_called()

    def test_stop_resets_state(self):
        poller = SelectionPoller(Mock(), 0.01)
        poller.start()

        poller.stop()

        assert poller.is_running is False

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            SelectionPoller(Mock(), 0)


class TestSelectionPollerOnLoop:
    """Polling on a running asyncio loop."""

    def test_polls_repeatedly_until_stopped(self):
        check = Mock()
        poller = SelectionPoller(check, 0.01)

        async def scenario():
            poller.start()
            assert poller.is_scheduled is True
            await asyncio.sleep(0.08)
            poller.stop()
            calls = check.call_count
            await asyncio.sleep(0.05)
            return calls

        calls_at_stop = asyncio.run(scenario())

        assert calls_at_stop >= 2
        assert check.call_count == calls_at_stop
        assert poller.is_scheduled is False

    def test_failing_check_keeps_polling(self):
        """An exception in the check is logged and polling continues."""
        check = Mock(side_effect=RuntimeError("boom"))
        poller = SelectionPoller(check, 0.01)

        async def scenario():
            poller.start()
            await asyncio.sleep(0.06)
            poller.stop()

        asyncio.run(scenario())

        assert check.call_count >= 2

    def test_start_twice_schedules_once(self):
        check = Mock()
        poller = SelectionPoller(check, 0.02)

        async def scenario():
            poller.start()
            handle = poller._handle
            poller.start()
            assert poller._handle is handle
            poller.stop()

        asyncio.run(scenario())
