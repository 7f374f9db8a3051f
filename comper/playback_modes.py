"""Playback modes - turn a held chord into a rhythmic comping schedule.

Each mode is a pure function from a voiced chord and a tempo to a
``PlaybackModeResult``: the notes to sound immediately (``sustained_notes``)
plus a list of ``ScheduledNoteGroup`` hits to fire later, measured in
milliseconds from the moment the chord is struck. Nothing here touches a
clock or a MIDI port - the result is consumed by ``comper.performer`` for
sound and by ``comper.display`` for note highlighting.

Modes fall into two families:

- **Instant** (``"block"``, ``"root-only"``, ``"shell"``) only choose which
  notes sound; tempo is irrelevant.
- **Rhythmic** (``"vamp"``, ``"charleston"``, ``"stride"``, ``"two-feel"``,
  ``"bossa"``, ``"tremolo"``, ``"custom"``) schedule hits on beat fractions.

A group with ``retrigger=True`` replaces whatever is sounding; with
``retrigger=False`` its notes are added on top.

Example:
	```python
	from comper.playback_modes import apply_playback_mode

	result = apply_playback_mode([62, 65, 69, 72], "two-feel", bpm=120)
	result.sustained_notes            # [62]
	[g.delay_ms for g in result.scheduled_groups]  # [500.0, 1000.0, 1500.0]
	```
"""

import dataclasses
import logging
import typing

import comper.chord_components
import comper.constants
import comper.custom_pattern


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ScheduledNoteGroup:

	"""
	Notes to sound together ``delay_ms`` after the chord is struck.
	"""

	notes: typing.List[int]
	delay_ms: float
	retrigger: bool = False


@dataclasses.dataclass(frozen=True)
class PlaybackModeResult:

	"""
	Sustained notes (sound now) and the groups scheduled after them.
	"""

	sustained_notes: typing.List[int]
	scheduled_groups: typing.List[ScheduledNoteGroup] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class PlaybackModeConfig:

	"""Display metadata for one playback mode."""

	id: str
	name: str
	description: str
	requires_bpm: bool


PLAYBACK_MODES: typing.List[PlaybackModeConfig] = [
	PlaybackModeConfig("block", "Block", "All notes together", False),
	PlaybackModeConfig("root-only", "Root Only", "Just the root note", False),
	PlaybackModeConfig("shell", "Shell", "Root + 3rd + 7th", False),
	PlaybackModeConfig("vamp", "Vamp", "Root then upper notes", True),
	PlaybackModeConfig("charleston", "Charleston", "Swing anticipation", True),
	PlaybackModeConfig("stride", "Stride", "Bass and chord alternating", True),
	PlaybackModeConfig("two-feel", "Two-Feel", "Walking bass feel", True),
	PlaybackModeConfig("bossa", "Bossa", "Bossa nova pattern", True),
	PlaybackModeConfig("tremolo", "Tremolo", "Rapid retrigger", True),
	PlaybackModeConfig("custom", "Custom", "User-defined pattern", True),
]

INSTANT_MODES: typing.FrozenSet[str] = frozenset(config.id for config in PLAYBACK_MODES if not config.requires_bpm)


def beat_duration (bpm: float) -> float:

	"""Return the length of one beat in milliseconds."""

	return comper.constants.MS_PER_MINUTE / bpm


def beat_fraction (bpm: float, fraction: float) -> float:

	"""Return ``fraction`` of a beat in milliseconds (0.5 = an eighth note)."""

	return beat_duration(bpm) * fraction


# ─── Mode strategies ──────────────────────────────────────────────────────────

ModeFn = typing.Callable[
	[typing.List[int], float, typing.Optional[comper.custom_pattern.CustomPlaybackPattern]],
	PlaybackModeResult
]


def _block (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""All notes together."""

	return PlaybackModeResult(sustained_notes=list(notes))


def _root_only (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Just the bass note."""

	parts = comper.chord_components.extract_chord_components(notes)

	return PlaybackModeResult(sustained_notes=[parts.root])


def _shell (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Root, 3rd and 7th (Bud Powell shell voicing).

	Falls back to the full chord when neither a 3rd nor a 7th is present,
	since a shell of the root alone says nothing about the harmony.
	"""

	parts = comper.chord_components.extract_chord_components(notes)

	shell = [parts.root]

	if parts.third is not None:
		shell.append(parts.third)

	if parts.seventh is not None:
		shell.append(parts.seventh)

	if len(shell) < 2:
		return PlaybackModeResult(sustained_notes=list(notes))

	return PlaybackModeResult(sustained_notes=shell)


def _vamp (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Root on beat 1, upper notes join on beat 2."""

	parts = comper.chord_components.extract_chord_components(notes)
	beat = beat_duration(bpm)

	return PlaybackModeResult(
		sustained_notes = [parts.root],
		scheduled_groups = [
			ScheduledNoteGroup(notes=parts.upper_notes, delay_ms=beat, retrigger=False),
		]
	)


def _charleston (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Chord on beat 1, re-struck on the "and" of 2."""

	return PlaybackModeResult(
		sustained_notes = list(notes),
		scheduled_groups = [
			ScheduledNoteGroup(notes=list(notes), delay_ms=beat_fraction(bpm, comper.constants.DOTTED_QUARTER), retrigger=True),
		]
	)


def _stride (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Low bass on beats 1 and 3, chord on beats 2 and 4."""

	parts = comper.chord_components.extract_chord_components(notes)
	beat = beat_duration(bpm)

	bass_note = max(comper.constants.STRIDE_BASS_FLOOR, parts.root - 12)
	upper = parts.upper_notes if parts.upper_notes else list(notes[1:])

	return PlaybackModeResult(
		sustained_notes = [bass_note],
		scheduled_groups = [
			ScheduledNoteGroup(notes=upper, delay_ms=beat, retrigger=False),
			ScheduledNoteGroup(notes=[bass_note], delay_ms=beat * 2, retrigger=True),
			ScheduledNoteGroup(notes=upper, delay_ms=beat * 3, retrigger=False),
		]
	)


def _two_feel (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Bass on 1 and 3 (the fifth on 3 when there is one), stabs on 2 and 4."""

	parts = comper.chord_components.extract_chord_components(notes)
	beat = beat_duration(bpm)

	beat3_bass = parts.fifth if parts.fifth is not None else parts.root
	stab = parts.upper_notes if parts.upper_notes else list(notes)

	return PlaybackModeResult(
		sustained_notes = [parts.root],
		scheduled_groups = [
			ScheduledNoteGroup(notes=stab, delay_ms=beat, retrigger=True),
			ScheduledNoteGroup(notes=[beat3_bass], delay_ms=beat * 2, retrigger=True),
			ScheduledNoteGroup(notes=stab, delay_ms=beat * 3, retrigger=True),
		]
	)


def _bossa (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Root on 1, fifth on the "and" of 2, full chord on 3."""

	parts = comper.chord_components.extract_chord_components(notes)
	beat = beat_duration(bpm)

	second_hit = [parts.fifth] if parts.fifth is not None else parts.upper_notes[:1]

	return PlaybackModeResult(
		sustained_notes = [parts.root],
		scheduled_groups = [
			ScheduledNoteGroup(notes=second_hit if second_hit else [parts.root], delay_ms=beat * 1.5, retrigger=False),
			ScheduledNoteGroup(notes=parts.upper_notes if parts.upper_notes else list(notes), delay_ms=beat * 2, retrigger=False),
		]
	)


def _tremolo (notes: typing.List[int], bpm: float, pattern: typing.Any = None) -> PlaybackModeResult:

	"""Re-strike the whole chord on every 16th note of the first beat."""

	sixteenth = beat_fraction(bpm, comper.constants.SIXTEENTH)

	return PlaybackModeResult(
		sustained_notes = list(notes),
		scheduled_groups = [
			ScheduledNoteGroup(notes=list(notes), delay_ms=sixteenth * i, retrigger=True)
			for i in range(1, 4)
		]
	)


def _custom (
	notes: typing.List[int],
	bpm: float,
	pattern: typing.Optional[comper.custom_pattern.CustomPlaybackPattern] = None
) -> PlaybackModeResult:

	"""Follow a user-drawn grid.

	Row *r* is the *r*-th chord note from the bottom; column *c* fires at
	``c`` sixteenths. Column 0 becomes the sustained notes and every later
	active column becomes one retrigger group. Rows beyond the chord size are
	ignored. Without a pattern the chord plays as a block.
	"""

	if pattern is None:
		logger.debug("Custom mode without a pattern - playing block")
		return _block(notes, bpm)

	sorted_notes = sorted(notes)
	sixteenth = beat_fraction(bpm, comper.constants.SIXTEENTH)
	columns: typing.Dict[int, typing.List[int]] = {}

	for row, col in pattern.active_cells():

		if row >= len(sorted_notes):
			continue

		columns.setdefault(col, []).append(sorted_notes[row])

	sustained = columns.pop(0, [])

	return PlaybackModeResult(
		sustained_notes = sustained,
		scheduled_groups = [
			ScheduledNoteGroup(notes=columns[col], delay_ms=sixteenth * col, retrigger=True)
			for col in sorted(columns)
		]
	)


MODE_STRATEGIES: typing.Dict[str, ModeFn] = {
	"block":      _block,
	"root-only":  _root_only,
	"shell":      _shell,
	"vamp":       _vamp,
	"charleston": _charleston,
	"stride":     _stride,
	"two-feel":   _two_feel,
	"bossa":      _bossa,
	"tremolo":    _tremolo,
	"custom":     _custom,
}


def validate_mode (mode: str) -> str:

	"""Return ``mode`` unchanged, or raise ``ValueError`` if it is not a known mode name."""

	if mode not in MODE_STRATEGIES:
		available = ", ".join(f'"{name}"' for name in MODE_STRATEGIES)
		raise ValueError(f"Unknown playback mode {mode!r}. Available modes: {available}")

	return mode


def apply_playback_mode (
	notes: typing.Sequence[int],
	mode: str,
	bpm: float,
	pattern: typing.Optional[comper.custom_pattern.CustomPlaybackPattern] = None
) -> PlaybackModeResult:

	"""Apply a playback mode to a chord.

	Parameters:
		notes: Voiced MIDI notes of the held chord, in any order.
		mode: Playback mode name (see ``MODE_STRATEGIES``).
		bpm: Current tempo. Only rhythmic modes read it; it is not
			validated here, so callers should reject non-positive values.
		pattern: Grid for the ``"custom"`` mode; ignored by the others.

	Returns:
		The sustained notes and scheduled groups. An empty chord always
		produces an empty result, whatever the mode or tempo.

	Raises:
		ValueError: If ``mode`` is not a known mode name.
	"""

	strategy = MODE_STRATEGIES[validate_mode(mode)]

	if not notes:
		return PlaybackModeResult(sustained_notes=[], scheduled_groups=[])

	return strategy(list(notes), bpm, pattern)


def mode_requires_bpm (mode: str) -> bool:

	"""Return True when the mode schedules hits against the tempo."""

	return mode not in INSTANT_MODES


def is_instant_mode (mode: str) -> bool:

	"""Return True for modes that only choose notes and never schedule."""

	return not mode_requires_bpm(mode)
