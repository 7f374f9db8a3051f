"""Audio trigger path - sounding chords on a MIDI output.

``ChordPerformer`` owns what is currently sounding on one MIDI channel and
turns chord changes into note-on/note-off messages:

- **Smart diffing.** ``play_chord()`` only releases notes that left the chord
  and only strikes notes that joined it; common tones keep ringing.
- **Retrigger.** ``retrigger_chord()`` releases everything and re-strikes the
  whole chord after a short re-articulation gap, so repeated hits are heard.
- **Strum / humanize.** New notes can be spread out evenly by pitch (strum)
  or randomly (humanize). Staggered note-ons are cancelled if the chord
  changes before they land.

``ModePlayer`` sits on top and plays each chord through a playback mode:
sustained notes immediately, scheduled groups when their delay elapses.

The output is anything with ``send(mido.Message)`` - a port from
``mido.open_output()`` or a test double. Send failures are logged rather
than raised so a disconnected device never stops the clock.
"""

import logging
import typing

import mido

import comper.constants
import comper.custom_pattern
import comper.humanize
import comper.playback_modes
import comper.strum
import comper.timer_queue


logger = logging.getLogger(__name__)


class ChordPerformer:

	"""
	Sends a chord's notes to a MIDI output with diffing, strum and humanize.
	"""

	def __init__ (
		self,
		output: typing.Any,
		timers: typing.Optional[comper.timer_queue.TimerQueue] = None,
		channel: int = 0,
		velocity: int = 100,
		humanize: float = 0,
		strum_enabled: bool = False,
		strum_spread: float = 0,
		strum_direction: str = comper.strum.STRUM_UP,
		rng: typing.Optional[comper.humanize.RandomSource] = None
	) -> None:

		"""Create a performer for one MIDI channel.

		Parameters:
			output: MIDI output port (``send(message)``; optionally ``panic()``).
				None makes every call a no-op.
			timers: Queue driving staggered note-ons and re-articulation.
			channel: MIDI channel, 0-15.
			velocity: Default note-on velocity.
			humanize: Humanize amount in percent (0 = off).
			strum_enabled: Use strum instead of humanize for new notes.
			strum_spread: Strum spread in ms (capped at ``MAX_STRUM_SPREAD``).
			strum_direction: ``"up"``, ``"down"`` or ``"alternate"``.
			rng: Random source for humanize offsets.
		"""

		self.output = output
		self._humanize_manager = comper.humanize.HumanizeManager(timers)
		self.timers = self._humanize_manager.timers
		self.channel = channel
		self.velocity = velocity
		self.humanize = humanize
		self.strum_enabled = strum_enabled
		self.strum_spread = strum_spread
		self.strum_direction = comper.strum.validate_direction(strum_direction)
		self.rng = rng

		# The chord being played, including notes still waiting on a staggered note-on.
		self.current_notes: typing.List[int] = []
		# Notes whose note-on has actually been sent and not yet released.
		self.sounding_notes: typing.List[int] = []
		self.sequence: int = 0
		self._last_strum_direction: str = comper.strum.STRUM_UP
		self._rearticulation: typing.Optional[comper.timer_queue.TimerHandle] = None


	# ------------------------------------------------------------------
	# MIDI output
	# ------------------------------------------------------------------

	def _send (self, message: mido.Message) -> None:

		"""Send one message, logging (not raising) on failure."""

		if self.output is None:
			return

		try:
			self.output.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")


	def _note_on (self, note: int, velocity: int) -> None:

		try:
			message = mido.Message('note_on', channel=self.channel, note=note, velocity=velocity)
		except (ValueError, TypeError):
			logger.exception(f"Invalid note_on (note={note}, velocity={velocity})")
			return

		self._send(message)

		if note not in self.sounding_notes:
			self.sounding_notes.append(note)


	def _note_off (self, note: int) -> None:

		try:
			message = mido.Message('note_off', channel=self.channel, note=note, velocity=0)
		except (ValueError, TypeError):
			logger.exception(f"Invalid note_off (note={note})")
			return

		self._send(message)

		if note in self.sounding_notes:
			self.sounding_notes.remove(note)


	# ------------------------------------------------------------------
	# Staggering
	# ------------------------------------------------------------------

	def _stagger_offsets (self, notes: typing.List[int]) -> typing.Optional[typing.List[float]]:

		"""Return per-note delays for strum or humanize, or None to strike together."""

		if len(notes) <= 1:
			return None

		if self.strum_enabled and self.strum_spread > 0:
			spread = min(self.strum_spread, comper.constants.MAX_STRUM_SPREAD)
			strum = comper.strum.get_strum_offsets(notes, spread, self.strum_direction, self._last_strum_direction)
			self._last_strum_direction = strum.next_direction
			return strum.offsets

		if self.humanize > 0:
			return comper.humanize.get_humanize_offsets(len(notes), self.humanize, self.rng)

		return None


	def _start_notes (self, notes: typing.List[int], velocity: int, sequence: int) -> None:

		"""Strike ``notes``, staggered when strum or humanize is on."""

		offsets = self._stagger_offsets(notes)

		if offsets is None:
			for note in notes:
				self._note_on(note, velocity)
			return

		for note, offset in zip(notes, offsets):
			self._humanize_manager.schedule(self._make_note_on(note, velocity, sequence), offset)


	def _make_note_on (self, note: int, velocity: int, sequence: int) -> typing.Callable[[], None]:

		"""Build a staggered note-on that is dropped if the chord has changed."""

		def _fire () -> None:

			if self.sequence != sequence:
				return

			self._note_on(note, velocity)

		return _fire


	def _cancel_rearticulation (self) -> None:

		if self._rearticulation is not None:
			self.timers.cancel(self._rearticulation)
			self._rearticulation = None


	# ------------------------------------------------------------------
	# Public API
	# ------------------------------------------------------------------

	def play_chord (self, notes: typing.Sequence[int], velocity: typing.Optional[int] = None) -> None:

		"""Move to a new chord, touching only the notes that change.

		Notes in the old chord but not the new one are released at once;
		notes new to the chord are struck (strummed or humanized when
		enabled); common tones are left ringing.
		"""

		if self.output is None or not notes:
			return

		vel = self.velocity if velocity is None else velocity

		self.sequence += 1
		self._humanize_manager.clear()

		new_notes = list(notes)

		for note in list(self.sounding_notes):
			if note not in new_notes:
				self._note_off(note)

		# Staggered note-ons cancelled above never sounded, so they are struck again here.
		to_start = [note for note in new_notes if note not in self.sounding_notes]

		if to_start:
			self._start_notes(to_start, vel, self.sequence)

		self.current_notes = new_notes


	def add_notes (self, notes: typing.Sequence[int], velocity: typing.Optional[int] = None) -> None:

		"""Layer notes on top of what is sounding without releasing anything.

		Used for additive (non-retrigger) hits. Notes already sounding, or
		still waiting on a staggered note-on for this chord, are not struck again.
		"""

		if self.output is None or not notes:
			return

		vel = self.velocity if velocity is None else velocity

		to_start = []

		for note in notes:
			if note not in self.current_notes and note not in self.sounding_notes and note not in to_start:
				to_start.append(note)

		if to_start:
			self._start_notes(to_start, vel, self.sequence)
			self.current_notes = self.current_notes + to_start


	def retrigger_chord (self, notes: typing.Sequence[int], velocity: typing.Optional[int] = None) -> None:

		"""Release everything, then re-strike the whole chord.

		The note-ons follow after ``REARTICULATION_DELAY_MS`` so the synth
		hears a clear release. Strum and humanize settings are read when the
		note-ons fire, not when this is called.
		"""

		if self.output is None or not notes:
			return

		vel = self.velocity if velocity is None else velocity

		self._cancel_rearticulation()
		self.sequence += 1
		current_sequence = self.sequence
		self._humanize_manager.clear()

		for note in list(self.sounding_notes):
			self._note_off(note)

		self.current_notes = []
		new_notes = list(notes)

		def _restrike () -> None:

			self._rearticulation = None

			if self.sequence != current_sequence:
				return

			if self.output is None:
				return

			self._start_notes(new_notes, vel, current_sequence)
			self.current_notes = new_notes

		self._rearticulation = self.timers.call_later(comper.constants.REARTICULATION_DELAY_MS, _restrike)


	def stop_all_notes (self) -> None:

		"""Cancel pending note-ons and release every sounding note."""

		self._cancel_rearticulation()
		self.sequence += 1
		self._humanize_manager.clear()

		for note in list(self.sounding_notes):
			self._note_off(note)

		self.current_notes = []


	def panic (self) -> None:

		"""Release tracked notes, then send All Notes Off / All Sound Off on every channel."""

		logger.info("Panic: sending all notes off.")

		self.stop_all_notes()

		if self.output is None:
			return

		for channel in range(comper.constants.MIDI_CHANNELS):
			self._send(mido.Message('control_change', channel=channel, control=comper.constants.CC_ALL_NOTES_OFF, value=0))
			self._send(mido.Message('control_change', channel=channel, control=comper.constants.CC_ALL_SOUND_OFF, value=0))

		port_panic = getattr(self.output, "panic", None)

		if port_panic is not None:
			try:
				port_panic()
			except Exception:
				logger.exception("MIDI panic failed (device may be disconnected)")


	def close (self) -> None:

		"""Cancel everything still scheduled. Sounding notes are left alone."""

		self._cancel_rearticulation()
		self._humanize_manager.clear()
		self.sequence += 1
		self.current_notes = list(self.sounding_notes)


class ModePlayer:

	"""Play chords through a ``ChordPerformer`` using a playback mode.

	Example:
		```python
		timers = TimerQueue()
		performer = ChordPerformer(port, timers)
		player = ModePlayer(performer, bpm=120, mode="stride")

		player.play_chord_with_mode([60, 64, 67])   # bass now, chord on beat 2...
		timers.advance(2000)
		```
	"""

	def __init__ (
		self,
		performer: ChordPerformer,
		bpm: float,
		mode: str = "block",
		pattern: typing.Optional[comper.custom_pattern.CustomPlaybackPattern] = None,
		timers: typing.Optional[comper.timer_queue.TimerQueue] = None
	) -> None:

		"""Attach to a performer.

		Parameters:
			performer: Where notes are sounded.
			bpm: Tempo for rhythmic modes. Must be positive (``ValueError`` otherwise).
			mode: Initial playback mode name.
			pattern: Grid for the ``"custom"`` mode.
			timers: Queue for scheduled groups. Defaults to the performer's.
		"""

		self.performer = performer
		self.bpm: float = 0.0
		self.set_bpm(bpm)
		self.mode = comper.playback_modes.validate_mode(mode)
		self.pattern = pattern
		self._scheduler = comper.humanize.HumanizeManager(timers if timers is not None else performer.timers)
		self.sequence: int = 0


	def set_mode (self, mode: str) -> None:

		"""Switch playback mode. Takes effect from the next chord."""

		self.mode = comper.playback_modes.validate_mode(mode)
		logger.info(f"Playback mode set to {mode!r}")


	def set_bpm (self, bpm: float) -> None:

		"""Change the tempo used for the next chord."""

		if bpm <= 0:
			raise ValueError("BPM must be positive")

		self.bpm = bpm


	def clear_scheduled (self) -> None:

		"""Cancel scheduled groups that have not fired yet."""

		self._scheduler.clear()


	def stop_playback (self) -> None:

		"""Cancel scheduled groups and silence the performer."""

		self.sequence += 1
		self.clear_scheduled()
		self.performer.stop_all_notes()


	def play_chord_with_mode (self, notes: typing.Sequence[int], velocity: typing.Optional[int] = None) -> comper.playback_modes.PlaybackModeResult:

		"""Play a chord with the current mode and return the schedule used."""

		self.sequence += 1
		current_sequence = self.sequence
		self.clear_scheduled()

		result = comper.playback_modes.apply_playback_mode(notes, self.mode, self.bpm, self.pattern)

		if result.sustained_notes:
			self.performer.play_chord(result.sustained_notes, velocity)

		for group in result.scheduled_groups:
			self._scheduler.schedule(self._make_group_hit(group, current_sequence, velocity), group.delay_ms)

		logger.debug(f"Playing {list(notes)} as {self.mode!r}: {len(result.scheduled_groups)} scheduled groups")

		return result


	def _make_group_hit (
		self,
		group: comper.playback_modes.ScheduledNoteGroup,
		sequence: int,
		velocity: typing.Optional[int]
	) -> typing.Callable[[], None]:

		"""Build the timer callback that sounds one scheduled group."""

		def _hit () -> None:

			if self.sequence != sequence:
				return

			if group.retrigger:
				self.performer.retrigger_chord(group.notes, velocity)
			else:
				self.performer.add_notes(group.notes, velocity)

		return _hit
