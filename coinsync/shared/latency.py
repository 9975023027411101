"""
Artificial latency for both ends of the socket.

Instead of one sleeping task per message, everything goes into a single
queue ordered by delivery time and gets drained by one loop. Ties on
delivery time are broken by submit order, so with a fixed delay per
direction a destination always sees its messages in the order they
were sent.
"""

import asyncio
import heapq
import itertools
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .constants import LAG_MS


class Direction(str, Enum):
    """Which way a message is crossing the network boundary."""
    OUTBOUND = "outbound"  # towards the remote end
    INBOUND = "inbound"    # arriving from the remote end


Deliver = Callable[[Any, Any], Awaitable[None]]


class DelayedMessage:
    """A message with a delivery time for latency simulation."""
    __slots__ = ("target", "payload", "deliver", "deliver_at")

    def __init__(self, target: Any, payload: Any, deliver: Deliver, deliver_at: float):
        self.target = target
        self.payload = payload
        self.deliver = deliver
        self.deliver_at = deliver_at


class LatencySimulator:
    """
    Holds messages back for a fixed delay per direction, then hands them
    to their deliver coroutine.

    is_alive(target) is checked at delivery time; anything addressed to a
    target that has gone away is dropped without complaint.
    """

    def __init__(self, outbound_ms: float = LAG_MS, inbound_ms: Optional[float] = None,
                 is_alive: Optional[Callable[[Any], bool]] = None,
                 clock: Callable[[], float] = time.monotonic, log_prefix: str = "LATENCY"):
        if inbound_ms is None:
            inbound_ms = outbound_ms
        self.delays: Dict[Direction, float] = {
            Direction.OUTBOUND: outbound_ms / 1000.0,
            Direction.INBOUND: inbound_ms / 1000.0,
        }
        self.is_alive = is_alive or (lambda target: True)
        self.clock = clock
        self.log_prefix = log_prefix

        self._queue: List[Tuple[float, int, DelayedMessage]] = []
        self._sequence = itertools.count()
        self._wakeup = asyncio.Event()

        self.delivered = 0
        self.dropped = 0
        self.failed = 0

    def __len__(self) -> int:
        return len(self._queue)

    def delay_for(self, direction: Direction) -> float:
        """Delay in seconds for the given direction."""
        return self.delays[direction]

    def submit(self, direction: Direction, target: Any, payload: Any, deliver: Deliver) -> float:
        """Queue a message; returns the clock time it will be delivered at."""
        deliver_at = self.clock() + self.delays[direction]
        message = DelayedMessage(target, payload, deliver, deliver_at)
        heapq.heappush(self._queue, (deliver_at, next(self._sequence), message))
        self._wakeup.set()
        return deliver_at

    def time_until_next(self, now: Optional[float] = None) -> Optional[float]:
        """Seconds until the next message is due, or None if nothing is queued."""
        if not self._queue:
            return None
        if now is None:
            now = self.clock()
        return max(0.0, self._queue[0][0] - now)

    async def pump(self, now: Optional[float] = None) -> int:
        """Deliver everything due at `now`. Returns how many went out."""
        if now is None:
            now = self.clock()

        count = 0
        while self._queue and self._queue[0][0] <= now:
            _, _, message = heapq.heappop(self._queue)
            if not self.is_alive(message.target):
                # Destination went away while we were holding the message
                self.dropped += 1
                continue
            try:
                await message.deliver(message.target, message.payload)
            except Exception as e:
                # Log and keep draining the rest
                self.failed += 1
                print(f"[{self.log_prefix}] Delivery failed for {message.target!r}: {e!r}")
                continue
            self.delivered += 1
            count += 1
        return count

    async def run(self):
        """Drain the queue forever, sleeping until the next message is due."""
        while True:
            await self.pump()

            self._wakeup.clear()
            timeout = self.time_until_next()
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass

    def clear(self):
        """Forget everything still in flight."""
        self._queue.clear()
