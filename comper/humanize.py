"""Timing humanization for chord playback.

Two pieces:

- ``get_humanize_offsets()`` produces one small random delay per note so a
  chord's notes land a few milliseconds apart, like a human hand.
- ``HumanizeManager`` fires callbacks after those delays and can cancel
  every one still waiting when the player moves to a new chord.

Offsets follow a triangular distribution - the mean of two uniform draws -
so they cluster around half the maximum delay instead of spreading evenly
between zero and the maximum.
"""

import logging
import random
import typing

import comper.constants
import comper.timer_queue


logger = logging.getLogger(__name__)


class RandomSource (typing.Protocol):

	"""Anything with a ``random()`` method returning a float in [0, 1)."""

	def random (self) -> float:
		...


def get_humanize_offsets (
	note_count: int,
	humanize_amount: float,
	rng: typing.Optional[RandomSource] = None
) -> typing.List[float]:

	"""Generate a timing offset in milliseconds for each note of a chord.

	At 100% the offsets range over 0-150 ms (``MAX_HUMANIZE_DELAY``),
	clustering around 75 ms. The amount is not clamped: negative amounts give
	negative offsets and amounts above 100 scale beyond 150 ms.

	Parameters:
		note_count: Number of notes to generate offsets for.
		humanize_amount: Humanization percentage (conventionally 0-100).
		rng: Random source, two draws per note. Defaults to the ``random``
			module; pass a seeded ``random.Random`` for repeatable results.

	Returns:
		A list of ``note_count`` offsets. All zeros when the amount is 0 or
		there is at most one note (nothing to stagger against).

	Example:
		```python
		get_humanize_offsets(4, 0)    # [0.0, 0.0, 0.0, 0.0]
		get_humanize_offsets(4, 50)   # e.g. [31.2, 44.9, 18.0, 52.7]
		```
	"""

	if humanize_amount == 0 or note_count <= 1:
		return [0.0] * max(0, note_count)

	if rng is None:
		rng = random  # type: ignore[assignment]

	assert rng is not None

	max_delay = (humanize_amount / 100.0) * comper.constants.MAX_HUMANIZE_DELAY
	offsets: typing.List[float] = []

	for _ in range(note_count):
		r1 = rng.random()
		r2 = rng.random()
		offsets.append(((r1 + r2) / 2.0) * max_delay)

	return offsets


class HumanizeManager:

	"""Schedule callbacks after a delay and cancel the ones still pending.

	Each manager owns its own set of pending handles. Several managers may
	share one ``TimerQueue``; clearing one never touches another's callbacks.

	Example:
		```python
		manager = HumanizeManager()
		manager.schedule(lambda: send_note_on(60), 25)
		manager.clear()   # the note-on never happens
		```
	"""

	def __init__ (self, timers: typing.Optional[comper.timer_queue.TimerQueue] = None) -> None:

		"""Attach to a timer queue, or create a private one.

		Parameters:
			timers: Queue that drives the delayed callbacks. When omitted the
				manager creates its own, available as ``manager.timers``.
		"""

		self.timers = timers if timers is not None else comper.timer_queue.TimerQueue()
		self._pending: typing.List[comper.timer_queue.TimerHandle] = []


	@property
	def pending_count (self) -> int:

		"""Number of callbacks scheduled and not yet fired or cleared."""

		return len(self._pending)


	def schedule (self, callback: typing.Callable[[], typing.Any], delay_ms: float) -> None:

		"""Run ``callback`` after ``delay_ms``.

		A delay of zero or less runs the callback immediately, before this
		method returns, and nothing is left pending.
		"""

		if delay_ms <= 0:
			callback()
			return

		handle: typing.Optional[comper.timer_queue.TimerHandle] = None

		def _fire () -> None:

			"""Drop the handle from the pending set, then run the callback."""

			if handle in self._pending:
				self._pending.remove(handle)

			callback()

		handle = self.timers.call_later(delay_ms, _fire)
		self._pending.append(handle)


	def clear (self) -> None:

		"""Cancel every pending callback. Callbacks that already ran are unaffected."""

		pending, self._pending = self._pending, []

		for handle in pending:
			self.timers.cancel(handle)

		if pending:
			logger.debug(f"Cleared {len(pending)} pending callbacks")
