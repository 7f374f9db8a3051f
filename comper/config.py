"""Performance settings loaded from YAML.

A config file looks like::

	midi:
	  device_name: "IAC Driver Bus 1"
	  channel: 0
	  velocity: 96
	tempo:
	  bpm: 120
	playback:
	  mode: two-feel
	  humanize: 20
	  pattern:            # only read by mode: custom; rows are chord notes from the bottom, columns are 16ths
	    - [1, 0, 0, 0, 0, 0, 0, 0]
	    - [0, 0, 1, 0, 0, 0, 1, 0]
	    - [0, 0, 1, 0, 0, 0, 1, 0]
	strum:
	  enabled: false
	  spread: 60
	  direction: alternate
	beats_per_chord: 4
	progression:
	  - [62, 65, 69, 72]
	  - [55, 59, 62, 65]
	  - [60, 64, 67, 71]

Every key is optional. ``PerformanceConfig.from_dict()`` fills in defaults and
rejects values the engine cannot play (non-positive tempo, unknown mode or
strum direction, or the ``custom`` mode without a ``playback.pattern`` grid).
"""

import dataclasses
import logging
import os
import typing

import yaml

import comper.custom_pattern
import comper.playback_modes
import comper.strum


logger = logging.getLogger(__name__)

DEFAULT_PROGRESSION: typing.List[typing.List[int]] = [
	[62, 65, 69, 72],   # Dm7
	[55, 59, 62, 65],   # G7
	[60, 64, 67, 71],   # Cmaj7
]


@dataclasses.dataclass
class PerformanceConfig:

	"""Everything needed to perform a progression."""

	device_name: typing.Optional[str] = None
	channel: int = 0
	velocity: int = 100
	bpm: float = 120.0
	mode: str = "block"
	humanize: float = 0.0
	strum_enabled: bool = False
	strum_spread: float = 0.0
	strum_direction: str = comper.strum.STRUM_UP
	beats_per_chord: float = 4.0
	progression: typing.List[typing.List[int]] = dataclasses.field(default_factory=lambda: [list(chord) for chord in DEFAULT_PROGRESSION])
	pattern: typing.Optional[comper.custom_pattern.CustomPlaybackPattern] = None

	def __post_init__ (self) -> None:
		if self.bpm <= 0:
			raise ValueError("BPM must be positive")
		if not 0 <= self.channel <= 15:
			raise ValueError(f"MIDI channel must be 0-15, got {self.channel}")
		if not 0 <= self.velocity <= 127:
			raise ValueError(f"Velocity must be 0-127, got {self.velocity}")
		if self.beats_per_chord <= 0:
			raise ValueError("beats_per_chord must be positive")
		if self.strum_spread < 0:
			raise ValueError("Strum spread cannot be negative")
		comper.playback_modes.validate_mode(self.mode)
		comper.strum.validate_direction(self.strum_direction)
		if self.mode == "custom" and self.pattern is None:
			raise ValueError("Playback mode 'custom' needs a playback.pattern grid")

	@staticmethod
	def from_dict (data: typing.Optional[typing.Dict[str, typing.Any]]) -> "PerformanceConfig":

		"""Build a config from parsed YAML, using defaults for missing keys."""

		data = data or {}

		midi = data.get('midi', {}) or {}
		tempo = data.get('tempo', {}) or {}
		playback = data.get('playback', {}) or {}
		strum = data.get('strum', {}) or {}

		defaults = PerformanceConfig()

		pattern_cells = playback.get('pattern')
		pattern = comper.custom_pattern.CustomPlaybackPattern.from_rows(pattern_cells) if pattern_cells is not None else None

		progression = data.get('progression')

		if progression is not None:
			if not isinstance(progression, list) or not all(isinstance(chord, list) for chord in progression):
				raise ValueError("progression must be a list of note lists")
			progression = [[int(note) for note in chord] for chord in progression]

		return PerformanceConfig(
			device_name = midi.get('device_name', defaults.device_name),
			channel = int(midi.get('channel', defaults.channel)),
			velocity = int(midi.get('velocity', defaults.velocity)),
			bpm = float(tempo.get('bpm', defaults.bpm)),
			mode = str(playback.get('mode', defaults.mode)),
			humanize = float(playback.get('humanize', defaults.humanize)),
			strum_enabled = bool(strum.get('enabled', defaults.strum_enabled)),
			strum_spread = float(strum.get('spread', defaults.strum_spread)),
			strum_direction = str(strum.get('direction', defaults.strum_direction)),
			beats_per_chord = float(data.get('beats_per_chord', defaults.beats_per_chord)),
			progression = progression if progression is not None else defaults.progression,
			pattern = pattern
		)


def load_config (config_path: str = 'config.yaml') -> PerformanceConfig:

	"""
	Load performance settings from a YAML file.

	A missing file is not an error: a warning is logged and defaults are used.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return PerformanceConfig()

	with open(config_path, 'r') as f:
		data = yaml.safe_load(f)

	if data is not None and not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return PerformanceConfig.from_dict(data)
