import pytest

import comper.custom_pattern
import comper.playback_modes


ALL_MODES = list(comper.playback_modes.MODE_STRATEGIES)

DM7 = [62, 65, 69, 72]
CMAJ7 = [60, 64, 67, 71]


def _groups (result: comper.playback_modes.PlaybackModeResult) -> list:

	"""Flatten groups to (notes, delay, retrigger) tuples for comparison."""

	return [(g.notes, g.delay_ms, g.retrigger) for g in result.scheduled_groups]


@pytest.mark.parametrize("mode", ALL_MODES)
@pytest.mark.parametrize("bpm", [120, 60, 0, -30])
def test_empty_chord_gives_empty_result (mode: str, bpm: float) -> None:

	"""An empty chord yields nothing to play in every mode, at any tempo."""

	result = comper.playback_modes.apply_playback_mode([], mode, bpm)

	assert result.sustained_notes == []
	assert result.scheduled_groups == []


def test_beat_duration () -> None:

	"""One beat at 120 BPM is 500 ms."""

	assert comper.playback_modes.beat_duration(120) == 500
	assert comper.playback_modes.beat_fraction(120, 0.5) == 250


def test_block_sustains_everything () -> None:

	"""Block mode plays the chord as given, with nothing scheduled."""

	notes = [67, 60, 64]
	result = comper.playback_modes.apply_playback_mode(notes, "block", 120)

	assert result.sustained_notes == notes
	assert result.scheduled_groups == []


def test_root_only () -> None:

	"""Root-only sustains just the lowest note."""

	result = comper.playback_modes.apply_playback_mode([67, 60, 64], "root-only", 120)

	assert result.sustained_notes == [60]
	assert result.scheduled_groups == []


def test_shell_major_seventh () -> None:

	"""Cmaj7 shell is root, major third, major seventh."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "shell", 120)

	assert result.sustained_notes == [60, 64, 71]
	assert result.scheduled_groups == []


def test_shell_triad_without_seventh () -> None:

	"""A triad's shell is root plus third."""

	result = comper.playback_modes.apply_playback_mode([60, 64, 67], "shell", 120)

	assert result.sustained_notes == [60, 64]


def test_shell_falls_back_to_full_chord () -> None:

	"""With no third or seventh the chord plays unchanged."""

	result = comper.playback_modes.apply_playback_mode([60, 67, 72], "shell", 120)

	assert result.sustained_notes == [60, 67, 72]


def test_vamp () -> None:

	"""Vamp: root now, upper notes added on beat 2."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "vamp", 120)

	assert result.sustained_notes == [60]
	assert _groups(result) == [([64, 67, 71], 500, False)]


def test_charleston () -> None:

	"""Charleston re-strikes the chord on the and of 2."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "charleston", 120)

	assert result.sustained_notes == CMAJ7
	assert _groups(result) == [(CMAJ7, 750, True)]


def test_stride () -> None:

	"""Stride: bass an octave down on 1 and 3, chord on 2 and 4."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "stride", 120)

	assert result.sustained_notes == [48]
	assert _groups(result) == [
		([64, 67, 71], 500, False),
		([48], 1000, True),
		([64, 67, 71], 1500, False),
	]


@pytest.mark.parametrize("root", [24, 30, 35, 36, 37, 60, 90])
def test_stride_bass_floor (root: int) -> None:

	"""The stride bass is max(24, root - 12)."""

	result = comper.playback_modes.apply_playback_mode([root, root + 4, root + 7], "stride", 100)

	assert result.sustained_notes == [max(24, root - 12)]


def test_stride_single_note () -> None:

	"""A single-note chord has no upper notes, so the upper hits are empty."""

	result = comper.playback_modes.apply_playback_mode([60], "stride", 120)

	assert result.sustained_notes == [48]
	assert result.scheduled_groups[0].notes == []
	assert result.scheduled_groups[1].notes == [48]


def test_two_feel_dm7_at_120 () -> None:

	"""Dm7 two-feel at 120 BPM matches the reference schedule."""

	result = comper.playback_modes.apply_playback_mode(DM7, "two-feel", 120)

	assert result.sustained_notes == [62]
	assert _groups(result) == [
		([65, 69, 72], 500, True),
		([69], 1000, True),
		([65, 69, 72], 1500, True),
	]


def test_two_feel_uses_root_without_fifth () -> None:

	"""With no fifth, beat 3 repeats the root."""

	result = comper.playback_modes.apply_playback_mode([60, 64, 70], "two-feel", 120)

	assert result.scheduled_groups[1].notes == [60]


def test_two_feel_single_note_uses_full_chord () -> None:

	"""With no upper notes, the stabs fall back to the whole chord."""

	result = comper.playback_modes.apply_playback_mode([60], "two-feel", 120)

	assert result.scheduled_groups[0].notes == [60]
	assert result.scheduled_groups[2].notes == [60]


def test_bossa_with_fifth () -> None:

	"""Bossa: root, fifth on the and of 2, upper chord on 3."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "bossa", 120)

	assert result.sustained_notes == [60]
	assert _groups(result) == [
		([67], 750, False),
		([64, 67, 71], 1000, False),
	]


def test_bossa_without_fifth () -> None:

	"""Without a fifth the second hit is the lowest upper note."""

	result = comper.playback_modes.apply_playback_mode([60, 64, 70], "bossa", 120)

	assert result.scheduled_groups[0].notes == [64]


def test_bossa_single_note () -> None:

	"""A single note falls back to the root for both hits."""

	result = comper.playback_modes.apply_playback_mode([60], "bossa", 120)

	assert result.scheduled_groups[0].notes == [60]
	assert result.scheduled_groups[1].notes == [60]


@pytest.mark.parametrize("bpm", [60, 90, 120, 180])
def test_tremolo (bpm: float) -> None:

	"""Tremolo: three retrigger groups of the full chord on 16ths."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "tremolo", bpm)
	beat = 60000 / bpm

	assert result.sustained_notes == CMAJ7
	assert len(result.scheduled_groups) == 3

	for i, group in enumerate(result.scheduled_groups, start=1):
		assert group.notes == CMAJ7
		assert group.retrigger is True
		assert group.delay_ms == pytest.approx(i * beat / 4)


def test_custom_grid () -> None:

	"""Custom mode maps rows to chord notes and columns to 16ths."""

	pattern = comper.custom_pattern.CustomPlaybackPattern.empty(rows=3, cols=16)
	pattern.toggle(0, 0)
	pattern.toggle(1, 2)
	pattern.toggle(2, 2)
	pattern.toggle(0, 4)

	result = comper.playback_modes.apply_playback_mode([67, 60, 64], "custom", 120, pattern)

	assert result.sustained_notes == [60]
	assert _groups(result) == [
		([64, 67], 250, True),
		([60], 500, True),
	]


def test_custom_ignores_rows_beyond_chord () -> None:

	"""Rows above the chord's note count are skipped."""

	pattern = comper.custom_pattern.CustomPlaybackPattern.empty(rows=4, cols=4)
	pattern.toggle(3, 1)
	pattern.toggle(0, 1)

	result = comper.playback_modes.apply_playback_mode([60, 64], "custom", 120, pattern)

	assert result.sustained_notes == []
	assert _groups(result) == [([60], 125, True)]


def test_custom_without_pattern_plays_block () -> None:

	"""Custom mode with no pattern behaves like block."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "custom", 120)

	assert result.sustained_notes == CMAJ7
	assert result.scheduled_groups == []


def test_unknown_mode_raises () -> None:

	"""Unknown mode names are rejected."""

	with pytest.raises(ValueError, match="arpeggio"):
		comper.playback_modes.apply_playback_mode(CMAJ7, "arpeggio", 120)


def test_mode_requires_bpm () -> None:

	"""Only block, root-only and shell ignore the tempo."""

	for mode in ALL_MODES:
		expected = mode not in ("block", "root-only", "shell")
		assert comper.playback_modes.mode_requires_bpm(mode) is expected
		assert comper.playback_modes.is_instant_mode(mode) is not expected


def test_mode_table_matches_configs () -> None:

	"""Every mode has display metadata that agrees with mode_requires_bpm."""

	assert [config.id for config in comper.playback_modes.PLAYBACK_MODES] == ALL_MODES

	for config in comper.playback_modes.PLAYBACK_MODES:
		assert config.requires_bpm == comper.playback_modes.mode_requires_bpm(config.id)


def test_negative_bpm_is_permissive () -> None:

	"""A negative tempo is not rejected; delays come out negative."""

	result = comper.playback_modes.apply_playback_mode(CMAJ7, "vamp", -120)

	assert result.scheduled_groups[0].delay_ms == -500


def test_custom_pattern_validates_shape () -> None:

	"""Grids that disagree with rows/cols are rejected."""

	with pytest.raises(ValueError):
		comper.custom_pattern.CustomPlaybackPattern(grid=[[False] * 4], rows=2, cols=4)

	with pytest.raises(ValueError):
		comper.custom_pattern.CustomPlaybackPattern(grid=[[False] * 3], rows=1, cols=4)

	with pytest.raises(ValueError):
		comper.custom_pattern.CustomPlaybackPattern.empty(rows=9, cols=4)


def test_custom_pattern_toggle () -> None:

	"""toggle() flips a cell and reports the new state."""

	pattern = comper.custom_pattern.CustomPlaybackPattern.empty(rows=2, cols=2)

	assert pattern.toggle(1, 1) is True
	assert pattern.toggle(1, 1) is False

	with pytest.raises(IndexError):
		pattern.toggle(2, 0)


def test_custom_pattern_from_rows () -> None:

	"""Rows of 0/1 cells build a grid of the matching shape."""

	pattern = comper.custom_pattern.CustomPlaybackPattern.from_rows([[1, 0, 0, 0], [0, 0, 1, 0]])

	assert (pattern.rows, pattern.cols) == (2, 4)
	assert list(pattern.active_cells()) == [(0, 0), (1, 2)]

	with pytest.raises(ValueError):
		comper.custom_pattern.CustomPlaybackPattern.from_rows([[1, 0], [1]])

	with pytest.raises(ValueError):
		comper.custom_pattern.CustomPlaybackPattern.from_rows([])
