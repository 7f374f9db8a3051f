"""Strum timing for chord playback.

Where humanization scatters notes randomly, a strum spaces them evenly by
pitch - low to high for an up-strum, high to low for a down-strum - across a
total spread in milliseconds. ``"alternate"`` flips direction on every chord,
like a guitarist's right hand.

Example:
	```python
	get_strum_offsets([60, 64, 67], 100, "up").offsets    # [0.0, 50.0, 100.0]
	get_strum_offsets([60, 64, 67], 100, "down").offsets  # [100.0, 50.0, 0.0]
	```
"""

import dataclasses
import typing


STRUM_UP = "up"
STRUM_DOWN = "down"
STRUM_ALTERNATE = "alternate"

STRUM_DIRECTIONS: typing.Tuple[str, ...] = (STRUM_UP, STRUM_DOWN, STRUM_ALTERNATE)


@dataclasses.dataclass(frozen=True)
class StrumOffsets:

	"""Per-note delays plus the direction to remember for the next strum."""

	offsets: typing.List[float]
	next_direction: str


def validate_direction (direction: str) -> str:

	"""Return ``direction`` unchanged, or raise ``ValueError`` if unknown."""

	if direction not in STRUM_DIRECTIONS:
		raise ValueError(f"Unknown strum direction {direction!r}. Expected one of {', '.join(STRUM_DIRECTIONS)}")

	return direction


def get_strum_offsets (
	notes: typing.Sequence[int],
	spread_ms: float,
	direction: str,
	last_direction: str = STRUM_UP
) -> StrumOffsets:

	"""Generate strum delays for a chord.

	Parameters:
		notes: MIDI notes in playing order. Offsets are returned in the same
			order, each set by the note's rank in the sorted chord.
		spread_ms: Delay between the first and last note.
		direction: ``"up"``, ``"down"`` or ``"alternate"``.
		last_direction: The direction actually used for the previous strum;
			only consulted for ``"alternate"``.

	Returns:
		``StrumOffsets`` with one delay per note and the direction to pass
		as ``last_direction`` next time.
	"""

	validate_direction(direction)

	note_count = len(notes)

	if spread_ms == 0 or note_count <= 1:
		return StrumOffsets(offsets=[0.0] * note_count, next_direction=last_direction)

	if direction == STRUM_ALTERNATE:
		actual = STRUM_DOWN if last_direction == STRUM_UP else STRUM_UP
	else:
		actual = direction

	# Rank by pitch; a doubled note keeps the rank of its last occurrence.
	positions = {note: index for index, note in enumerate(sorted(notes))}
	interval = spread_ms / (note_count - 1)

	if actual == STRUM_UP:
		offsets = [positions[note] * interval for note in notes]
	else:
		offsets = [(note_count - 1 - positions[note]) * interval for note in notes]

	return StrumOffsets(offsets=offsets, next_direction=actual)
