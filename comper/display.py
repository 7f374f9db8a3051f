"""Keyboard highlight state that follows the comping schedule.

``DisplaySynchronizer`` replays a ``PlaybackModeResult`` into a single
observable value, ``active_notes`` - the notes a keyboard view should show as
lit right now. Sustained notes light up as soon as the chord changes; each
scheduled group then replaces (retrigger) or adds to (additive) the lit notes
when its delay elapses.

Chord changes race against pending highlights, so two mechanisms guard
against a stale update landing after the chord has moved on:

1. Every pending timer is cancelled on the next chord change.
2. Every update also carries the sequence number of the chord it belongs
   to and is dropped if a newer chord has arrived since.

Example:
	```python
	timers = TimerQueue()
	display = DisplaySynchronizer(timers)
	display.on_change(lambda notes: print("lit:", notes))

	display.update([62, 65, 69, 72], "two-feel", bpm=120)  # lit: [62]
	timers.advance(500)                                      # lit: [65, 69, 72]
	```
"""

import logging
import typing

import comper.custom_pattern
import comper.event_emitter
import comper.humanize
import comper.playback_modes
import comper.timer_queue


logger = logging.getLogger(__name__)

ACTIVE_NOTES_EVENT = "active_notes"


class DisplaySynchronizer:

	"""
	Mirror the scheduled comping pattern as a live set of highlighted notes.
	"""

	def __init__ (self, timers: typing.Optional[comper.timer_queue.TimerQueue] = None) -> None:

		"""Create a synchronizer with nothing lit.

		Parameters:
			timers: Queue that drives highlight updates. Share it with the
				audio side so sound and display follow the same clock. When
				omitted a private queue is created (``display.timers``).
		"""

		self._scheduler = comper.humanize.HumanizeManager(timers)
		self.timers = self._scheduler.timers
		self.events = comper.event_emitter.EventEmitter()
		self.sequence: int = 0
		self._active_notes: typing.List[int] = []


	@property
	def active_notes (self) -> typing.List[int]:

		"""The notes lit right now (a copy)."""

		return list(self._active_notes)


	def on_change (self, callback: typing.Callable[[typing.List[int]], typing.Any]) -> None:

		"""Call ``callback(notes)`` every time the lit notes are written."""

		self.events.on(ACTIVE_NOTES_EVENT, callback)


	def off_change (self, callback: typing.Callable[[typing.List[int]], typing.Any]) -> None:

		"""Stop notifying ``callback``."""

		self.events.off(ACTIVE_NOTES_EVENT, callback)


	def _set_active_notes (self, notes: typing.List[int]) -> None:

		"""Write the lit notes and notify observers."""

		self._active_notes = list(notes)
		self.events.emit(ACTIVE_NOTES_EVENT, list(self._active_notes))


	def update (
		self,
		chord_notes: typing.Optional[typing.Sequence[int]],
		mode: str,
		bpm: float,
		pattern: typing.Optional[comper.custom_pattern.CustomPlaybackPattern] = None
	) -> None:

		"""React to a chord change (or release, when ``chord_notes`` is empty/None).

		Parameters:
			chord_notes: Notes of the new chord, or None when nothing is held.
			mode: Playback mode name.
			bpm: Current tempo.
			pattern: Grid for the ``"custom"`` mode.
		"""

		self._scheduler.clear()
		self.sequence += 1

		if not chord_notes:
			self._set_active_notes([])
			return

		notes = list(chord_notes)

		if mode == "block":
			self._set_active_notes(notes)
			return

		result = comper.playback_modes.apply_playback_mode(notes, mode, bpm, pattern)

		self._set_active_notes(result.sustained_notes)

		if not comper.playback_modes.mode_requires_bpm(mode):
			return

		current_sequence = self.sequence

		for group in result.scheduled_groups:
			self._scheduler.schedule(self._make_group_update(group, current_sequence), group.delay_ms)

		logger.debug(f"Display: {mode} chord {notes} with {len(result.scheduled_groups)} scheduled updates")


	def _make_group_update (self, group: comper.playback_modes.ScheduledNoteGroup, sequence: int) -> typing.Callable[[], None]:

		"""Build the timer callback that applies one scheduled group."""

		def _apply () -> None:

			# A newer chord owns the display now.
			if self.sequence != sequence:
				return

			if group.retrigger:
				self._set_active_notes(group.notes)
			else:
				combined = list(self._active_notes)
				for note in group.notes:
					if note not in combined:
						combined.append(note)
				self._set_active_notes(combined)

		return _apply


	def close (self) -> None:

		"""Cancel pending highlight updates and invalidate any that slip through.

		Safe to call more than once.
		"""

		self._scheduler.clear()
		self.sequence += 1
