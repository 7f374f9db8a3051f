"""Chord component analysis.

Identifies the functional parts of a voiced chord - root, 3rd, 5th, 7th and
the notes above the root - from nothing more than a set of MIDI note numbers.
The voicing may be inverted, spread across octaves, or contain doublings; the
lowest note is always treated as the root and every other note is classified
by its interval above it (mod 12, so octave displacement is ignored).

Example:
	```python
	from comper.chord_components import extract_chord_components

	parts = extract_chord_components([67, 60, 71, 64])  # Cmaj7, any order
	parts.root         # 60
	parts.third        # 64
	parts.fifth        # 67
	parts.seventh      # 71
	parts.upper_notes  # [64, 67, 71]
	```
"""

import dataclasses
import typing

import comper.constants


# Accepted intervals above the root (semitones, mod 12).

THIRD_INTERVALS: typing.Tuple[int, ...] = (3, 4)
FIFTH_INTERVALS: typing.Tuple[int, ...] = (6, 7, 8)
SEVENTH_INTERVALS: typing.Tuple[int, ...] = (10, 11)


@dataclasses.dataclass(frozen=True)
class ChordComponents:

	"""
	The functional parts of a voiced chord.

	``third``, ``fifth`` and ``seventh`` are ``None`` when no note in the
	voicing sits at a matching interval above the root. ``all_notes`` keeps
	the caller's original order; ``upper_notes`` is ascending.
	"""

	root: int
	third: typing.Optional[int]
	fifth: typing.Optional[int]
	seventh: typing.Optional[int]
	upper_notes: typing.List[int]
	all_notes: typing.List[int]


def _find_by_interval (sorted_notes: typing.List[int], root: int, intervals: typing.Tuple[int, ...]) -> typing.Optional[int]:

	"""Return the lowest note whose interval above ``root`` is in ``intervals``."""

	for note in sorted_notes:

		if note == root:
			continue

		if (note - root) % 12 in intervals:
			return note

	return None


def extract_chord_components (notes: typing.Sequence[int]) -> ChordComponents:

	"""Extract root, 3rd, 5th, 7th and upper notes from a voiced chord.

	The lowest note is the root. Each of the 3rd, 5th and 7th is the lowest
	note (by pitch, not by interval preference) whose interval above the root
	falls in the matching set: 3rd {3, 4}, 5th {6, 7, 8}, 7th {10, 11}.

	Parameters:
		notes: MIDI note numbers in any order. Duplicates are allowed.

	Returns:
		A ``ChordComponents``. An empty chord yields a root of 60 and no
		other components; this function never raises.

	Example:
		```python
		parts = extract_chord_components([62, 65, 69, 72])  # Dm7
		parts.third   # 65 (minor third)
		parts.fifth   # 69
		parts.seventh # 72 (minor seventh)
		```
	"""

	if not notes:
		return ChordComponents(
			root = comper.constants.DEFAULT_ROOT,
			third = None,
			fifth = None,
			seventh = None,
			upper_notes = [],
			all_notes = []
		)

	sorted_notes = sorted(notes)
	root = sorted_notes[0]

	return ChordComponents(
		root = root,
		third = _find_by_interval(sorted_notes, root, THIRD_INTERVALS),
		fifth = _find_by_interval(sorted_notes, root, FIFTH_INTERVALS),
		seventh = _find_by_interval(sorted_notes, root, SEVENTH_INTERVALS),
		upper_notes = sorted_notes[1:],
		all_notes = list(notes)
	)
