"""Tests for Channel — non-blocking polls and observable hang-ups."""

from __future__ import annotations

import threading

import pytest

from buildforge.core.channel import Channel, ChannelClosed


class TestChannel:
    def test_try_recv_empty(self):
        channel: Channel[int] = Channel()
        assert channel.try_recv() is None

    def test_messages_arrive_in_order(self):
        channel: Channel[int] = Channel()
        for i in range(3):
            channel.send(i)
        assert [channel.try_recv() for _ in range(3)] == [0, 1, 2]

    def test_close_drains_before_hangup(self):
        channel: Channel[str] = Channel()
        channel.send("last words")
        channel.close()
        assert channel.try_recv() == "last words"
        with pytest.raises(ChannelClosed):
            channel.try_recv()

    def test_hangup_is_sticky(self):
        channel: Channel[str] = Channel()
        channel.close()
        for _ in range(3):
            with pytest.raises(ChannelClosed):
                channel.try_recv()
        with pytest.raises(ChannelClosed):
            channel.recv()

    def test_close_twice(self):
        channel: Channel[str] = Channel()
        channel.close()
        channel.close()
        assert channel.closed

    def test_send_after_close(self):
        channel: Channel[str] = Channel()
        channel.close()
        with pytest.raises(ChannelClosed):
            channel.send("too late")

    def test_close_wakes_blocked_receiver(self):
        channel: Channel[str] = Channel()
        outcome: list[str] = []

        def receiver() -> None:
            try:
                channel.recv()
            except ChannelClosed:
                outcome.append("closed")

        thread = threading.Thread(target=receiver)
        thread.start()
        channel.close()
        thread.join(timeout=5)
        assert outcome == ["closed"]

    def test_recv_blocks_until_send(self):
        channel: Channel[int] = Channel()
        received: list[int] = []
        thread = threading.Thread(target=lambda: received.append(channel.recv()))
        thread.start()
        channel.send(42)
        thread.join(timeout=5)
        assert received == [42]
