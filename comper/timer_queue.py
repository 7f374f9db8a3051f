"""Delay queue for cancellable, time-ordered callbacks.

Every deferred action in the engine - a humanized note-on, a scheduled
chord stab, a display highlight - is an entry in a ``TimerQueue``: a min-heap
of ``(deadline, sequence)`` keyed handles. Entries with the same deadline fire
in the order they were registered, and a handle can be cancelled at any time
before it fires.

The queue runs in one of two ways:

- **Simulated time.** ``advance(ms)`` moves the clock forward and fires every
  entry that falls due, in order. Nothing sleeps, so tests and offline
  rendering are exact and instant.
- **Real time.** ``await start()`` spawns an asyncio task that follows the
  wall clock (``time.perf_counter``) and fires entries as they fall due.
  ``await stop()`` ends it.

Example:
	```python
	timers = TimerQueue()
	handle = timers.call_later(500, lambda: print("beat 2"))
	timers.advance(250)     # nothing yet
	timers.cancel(handle)   # True - it never fires
	```
"""

import asyncio
import dataclasses
import heapq
import itertools
import logging
import time
import typing


logger = logging.getLogger(__name__)


@dataclasses.dataclass(order=True)
class TimerHandle:

	"""
	A callback registered on a ``TimerQueue``.
	"""

	deadline_ms: float
	sequence: int
	callback: typing.Callable[[], typing.Any] = dataclasses.field(compare=False)
	fired: bool = dataclasses.field(compare=False, default=False)
	cancelled: bool = dataclasses.field(compare=False, default=False)


	@property
	def pending (self) -> bool:

		"""True until the callback has fired or been cancelled."""

		return not (self.fired or self.cancelled)


class TimerQueue:

	"""
	Min-heap of timed callbacks driven by simulated or wall-clock time.
	"""

	def __init__ (self) -> None:

		"""Start an empty queue at time zero."""

		self._heap: typing.List[TimerHandle] = []
		self._counter = itertools.count()
		self._now_ms: float = 0.0

		# Real-time driver state
		self.running: bool = False
		self._origin: float = 0.0
		self._task: typing.Optional[asyncio.Task] = None
		self._wakeup: typing.Optional[asyncio.Event] = None


	def __len__ (self) -> int:

		return len(self._heap)


	@property
	def now_ms (self) -> float:

		"""Current queue time in milliseconds."""

		if self.running:
			return self._now_ms + (time.perf_counter() - self._origin) * 1000.0

		return self._now_ms


	@property
	def next_deadline (self) -> typing.Optional[float]:

		"""Deadline of the earliest pending entry, or None when empty."""

		return self._heap[0].deadline_ms if self._heap else None


	def call_later (self, delay_ms: float, callback: typing.Callable[[], typing.Any]) -> TimerHandle:

		"""Register ``callback`` to fire ``delay_ms`` from now.

		Negative delays are treated as zero: the entry is due immediately but
		still fires from the queue, never synchronously from this call.
		"""

		handle = TimerHandle(
			deadline_ms = self.now_ms + max(0.0, delay_ms),
			sequence = next(self._counter),
			callback = callback
		)

		heapq.heappush(self._heap, handle)

		if self._wakeup is not None:
			self._wakeup.set()

		return handle


	def cancel (self, handle: TimerHandle) -> bool:

		"""Remove a pending entry.

		Returns False when the handle has already fired or been cancelled,
		so cancelling twice is harmless.
		"""

		if not handle.pending:
			return False

		handle.cancelled = True
		self._heap.remove(handle)
		heapq.heapify(self._heap)

		return True


	def advance (self, ms: float) -> int:

		"""Move simulated time forward by ``ms`` and fire everything that falls due.

		Entries registered by a firing callback are honoured if their deadline
		lands inside the window. Returns the number of callbacks fired.

		Raises:
			RuntimeError: If the real-time driver is running.
		"""

		if self.running:
			raise RuntimeError("advance() cannot be used while the real-time driver is running")

		if ms < 0:
			raise ValueError("Cannot advance time backwards")

		target = self._now_ms + ms
		fired = self._fire_due(target, simulated=True)
		self._now_ms = target

		return fired


	def run_due (self) -> int:

		"""Fire entries that are already due without moving time."""

		return self._fire_due(self.now_ms, simulated=not self.running)


	def _fire_due (self, until_ms: float, simulated: bool) -> int:

		"""Pop and fire every entry with a deadline at or before ``until_ms``."""

		fired = 0

		while self._heap and self._heap[0].deadline_ms <= until_ms:

			handle = heapq.heappop(self._heap)

			if simulated:
				self._now_ms = max(self._now_ms, handle.deadline_ms)

			handle.fired = True
			fired += 1

			try:
				handle.callback()
			except Exception:
				logger.exception(f"Timer callback failed (deadline {handle.deadline_ms:.1f} ms)")

		return fired


	async def start (self) -> None:

		"""Follow the wall clock from the current queue time in a background task."""

		if self.running:
			return

		self._origin = time.perf_counter()
		self._wakeup = asyncio.Event()
		self.running = True
		self._task = asyncio.create_task(self._run_loop())

		logger.info(f"Timer queue started ({len(self._heap)} pending)")


	async def stop (self) -> None:

		"""Stop the real-time driver. Pending entries stay queued."""

		if not self.running:
			return

		self._now_ms = self.now_ms
		self.running = False

		if self._wakeup is not None:
			self._wakeup.set()

		if self._task:
			await self._task

		self._task = None
		self._wakeup = None

		logger.info(f"Timer queue stopped ({len(self._heap)} pending)")


	async def _run_loop (self) -> None:

		"""Sleep until the next deadline (or a new entry), then fire what is due."""

		assert self._wakeup is not None

		while self.running:

			self._fire_due(self.now_ms, simulated=False)

			if not self.running:
				break

			self._wakeup.clear()

			timeout: typing.Optional[float] = None

			if self._heap:
				timeout = max(0.0, (self._heap[0].deadline_ms - self.now_ms) / 1000.0)

			try:
				await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
			except asyncio.TimeoutError:
				pass
