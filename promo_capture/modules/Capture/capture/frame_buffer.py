import asyncio
from collections import deque
from typing import AsyncIterator, Generic, TypeVar

from .frame import AudioChunk, CapturedFrame


T = TypeVar("T", CapturedFrame, AudioChunk)


class Buffer(Generic[T]):
    """Bounded hand-off from a capture thread to the event loop.

    Producers call ``put_overwrite`` from any thread. When full, the oldest
    item is dropped so the recorder always sees the freshest data.
    """

    def __init__(self, capacity: int = 8, loop: asyncio.AbstractEventLoop | None = None):
        self._capacity = capacity
        self._buffer: deque[T] = deque(maxlen=capacity)
        self._drops = 0
        self._event = asyncio.Event()
        self._loop = loop
        self._running = True

    def _signal_event(self) -> None:
        if self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._event.set)
        except RuntimeError:
            # Loop already closed; nothing is waiting any more.
            pass

    def put_overwrite(self, item: T) -> bool:
        dropped = len(self._buffer) >= self._capacity
        if dropped:
            self._drops += 1
        self._buffer.append(item)
        self._signal_event()
        return not dropped

    async def items(self) -> AsyncIterator[T]:
        while self._running or self._buffer:
            if self._buffer:
                yield self._buffer.popleft()
                continue
            self._event.clear()
            try:
                await asyncio.wait_for(self._event.wait(), timeout=0.05)
            except asyncio.TimeoutError:
                continue

    def stop(self) -> None:
        self._running = False
        self._signal_event()

    @property
    def drops(self) -> int:
        return self._drops


class FrameBuffer(Buffer[CapturedFrame]):
    pass


class AudioBuffer(Buffer[AudioChunk]):
    pass
