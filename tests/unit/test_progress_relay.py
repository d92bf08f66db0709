"""Tests for the progress relay."""
import asyncio

import pytest

from cfstream.core.upload.models import UploadProgress
from cfstream.core.upload.services import ProgressRelay


def _progress(sent, total=100):
    return UploadProgress(bytes_sent=sent, bytes_total=total)


class TestProgressRelay:
    """Test suite for ProgressRelay."""

    def test_invalid_capacity(self):
        """Test zero capacity raises."""
        with pytest.raises(ValueError):
            ProgressRelay(maxsize=0)

    @pytest.mark.asyncio
    async def test_drops_when_full(self):
        """Test updates beyond capacity are dropped, not queued."""
        relay = ProgressRelay(maxsize=2)

        assert relay.emit(_progress(10)) is True
        assert relay.emit(_progress(20)) is True
        assert relay.emit(_progress(30)) is False
        assert relay.dropped == 1

    @pytest.mark.asyncio
    async def test_emit_does_not_wait_for_slow_consumer(self):
        """Test a blocked consumer never stalls the producer."""
        gate = asyncio.Event()
        received = []

        async def slow(progress):
            await gate.wait()
            received.append(progress.bytes_sent)

        relay = ProgressRelay(maxsize=1)
        relay.start(slow)
        await asyncio.sleep(0)

        results = [relay.emit(_progress(i)) for i in range(1, 50)]

        assert results.count(True) <= 2
        assert relay.dropped >= 47

        gate.set()
        await relay.close()
        assert received == sorted(received)

    @pytest.mark.asyncio
    async def test_close_delivers_queued_updates(self):
        """Test close drains before stopping."""
        received = []
        relay = ProgressRelay(maxsize=10)
        relay.start(lambda p: received.append(p.bytes_sent))

        for sent in (25, 50, 100):
            relay.emit(_progress(sent))
        await relay.close()

        assert received == [25, 50, 100]
        assert relay.running is False

    @pytest.mark.asyncio
    async def test_async_callback(self):
        """Test coroutine callbacks are awaited."""
        received = []

        async def callback(progress):
            received.append(progress.percentage)

        async with ProgressRelay() as relay:
            relay.start(callback)
            relay.emit(_progress(50))

        assert received == [50.0]

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_consumer(self):
        """Test a failing callback is logged and later updates still arrive."""
        received = []

        def callback(progress):
            if progress.bytes_sent == 10:
                raise RuntimeError("render failed")
            received.append(progress.bytes_sent)

        relay = ProgressRelay()
        relay.start(callback)
        relay.emit(_progress(10))
        relay.emit(_progress(20))
        await relay.close()

        assert received == [20]

    @pytest.mark.asyncio
    async def test_start_twice_raises(self):
        """Test only one consumer may run."""
        relay = ProgressRelay()
        relay.start(lambda p: None)
        try:
            with pytest.raises(RuntimeError):
                relay.start(lambda p: None)
        finally:
            await relay.close()

    @pytest.mark.asyncio
    async def test_close_without_start(self):
        """Test close is a no-op when never started."""
        relay = ProgressRelay()
        await relay.close()
        assert relay.running is False


class TestUploadProgress:
    """Test suite for UploadProgress."""

    def test_percentage(self):
        """Test percentage calculation."""
        assert _progress(25).percentage == 25.0

    def test_percentage_zero_total(self):
        """Test zero total gives zero percent."""
        assert UploadProgress(bytes_sent=0, bytes_total=0).percentage == 0.0

    def test_is_complete(self):
        """Test completion flag."""
        assert _progress(100).is_complete is True
        assert _progress(99).is_complete is False

    def test_negative_rejected(self):
        """Test negative counts raise."""
        with pytest.raises(ValueError):
            UploadProgress(bytes_sent=-1, bytes_total=10)
