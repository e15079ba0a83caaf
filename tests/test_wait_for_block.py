"""
Tests for ClientManager.wait_for_generate_block polling.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import pytest
from conftest import FakeTransport, raw

import polyclient.client as client_module
from polyclient.client import ClientManager
from polyclient.errors import NoAvailableClientError, TransportError, WaitTimeoutError


class HeightSequence(FakeTransport):
    """Answers height queries from a script; the last entry repeats."""

    def __init__(self, heights: Iterable[int | Exception]):
        super().__init__()
        self.heights = list(heights)
        self.polls = 0

    async def get_current_block_height(self, qid: str) -> bytes:
        self.calls.append(("get_current_block_height", qid, ()))
        index = min(self.polls, len(self.heights) - 1)
        self.polls += 1
        value = self.heights[index]
        if isinstance(value, Exception):
            raise value
        return raw(value)


def make_manager(transport: FakeTransport) -> ClientManager:
    manager = ClientManager()
    manager.set_default_client(transport)
    return manager


@pytest.fixture
def no_poll_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(client_module, "BLOCK_POLL_INTERVAL", 0)


class TestWaitForGenerateBlock:
    @pytest.mark.asyncio
    async def test_succeeds_after_two_blocks(self, no_poll_delay) -> None:
        transport = HeightSequence([100, 101, 102, 103])
        manager = make_manager(transport)

        assert await manager.wait_for_generate_block(10) is True
        # start + two polls
        assert transport.polls == 3

    @pytest.mark.asyncio
    async def test_waits_at_least_one_interval_per_block(self) -> None:
        transport = HeightSequence([5, 6, 7])
        manager = make_manager(transport)
        loop = asyncio.get_running_loop()

        start = loop.time()
        assert await manager.wait_for_generate_block(5) is True
        assert loop.time() - start >= 2 * client_module.BLOCK_POLL_INTERVAL - 0.05

    @pytest.mark.asyncio
    async def test_timeout_when_height_never_advances(self, no_poll_delay) -> None:
        transport = HeightSequence([50])
        manager = make_manager(transport)

        with pytest.raises(WaitTimeoutError, match=r"timeout after 3 \(s\)"):
            await manager.wait_for_generate_block(3)
        assert transport.polls == 1 + 3

    @pytest.mark.asyncio
    async def test_sub_second_timeout_polls_once(self, no_poll_delay) -> None:
        transport = HeightSequence([50])
        manager = make_manager(transport)

        with pytest.raises(WaitTimeoutError, match=r"timeout after 1 \(s\)"):
            await manager.wait_for_generate_block(0.2)
        assert transport.polls == 2

    @pytest.mark.asyncio
    async def test_custom_block_count(self, no_poll_delay) -> None:
        transport = HeightSequence([10, 11, 12, 13, 14, 15])
        manager = make_manager(transport)

        assert await manager.wait_for_generate_block(10, 5) is True
        assert transport.polls == 6

    @pytest.mark.asyncio
    async def test_non_positive_count_means_default(self, no_poll_delay) -> None:
        transport = HeightSequence([10, 11, 12])
        manager = make_manager(transport)

        assert await manager.wait_for_generate_block(10, 0) is True
        assert transport.polls == 3

    @pytest.mark.asyncio
    async def test_poll_errors_are_missed_ticks(self, no_poll_delay) -> None:
        transport = HeightSequence(
            [20, TransportError("connection reset"), TransportError("connection reset"), 22]
        )
        manager = make_manager(transport)

        assert await manager.wait_for_generate_block(5) is True
        assert transport.polls == 4

    @pytest.mark.asyncio
    async def test_poll_errors_count_against_timeout(self, no_poll_delay) -> None:
        transport = HeightSequence([20, TransportError("down")])
        manager = make_manager(transport)

        with pytest.raises(WaitTimeoutError):
            await manager.wait_for_generate_block(2)
        assert transport.polls == 3

    @pytest.mark.asyncio
    async def test_initial_height_error_propagates(self, no_poll_delay) -> None:
        transport = HeightSequence([TransportError("refused"), 10, 20])
        manager = make_manager(transport)

        with pytest.raises(TransportError, match="refused"):
            await manager.wait_for_generate_block(5)
        assert transport.polls == 1

    @pytest.mark.asyncio
    async def test_lower_height_does_not_count(self, no_poll_delay) -> None:
        transport = HeightSequence([100, 90, 99])
        manager = make_manager(transport)

        with pytest.raises(WaitTimeoutError):
            await manager.wait_for_generate_block(2)

    @pytest.mark.asyncio
    async def test_no_client(self) -> None:
        with pytest.raises(NoAvailableClientError):
            await ClientManager().wait_for_generate_block(1)
