import asyncio
import logging
import sys

import comper.config
import comper.display
import comper.midi_utils
import comper.performer
import comper.playback_modes
import comper.timer_queue


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def note_name (note: int) -> str:

	"""Return a name like ``"D4"`` for a MIDI note number (C4 = 60)."""

	return f"{_NOTE_NAMES[note % 12]}{note // 12 - 1}"


async def perform (config: comper.config.PerformanceConfig, output: object) -> None:

	"""
	Play the configured progression once, in real time.
	"""

	timers = comper.timer_queue.TimerQueue()

	performer = comper.performer.ChordPerformer(
		output,
		timers,
		channel = config.channel,
		velocity = config.velocity,
		humanize = config.humanize,
		strum_enabled = config.strum_enabled,
		strum_spread = config.strum_spread,
		strum_direction = config.strum_direction
	)

	player = comper.performer.ModePlayer(performer, bpm=config.bpm, mode=config.mode, pattern=config.pattern, timers=timers)
	display = comper.display.DisplaySynchronizer(timers)
	display.on_change(lambda notes: logger.info(f"Keys: {' '.join(note_name(n) for n in notes) or '-'}"))

	chord_ms = comper.playback_modes.beat_duration(config.bpm) * config.beats_per_chord
	finished = asyncio.Event()

	def _chord_change (notes: list) -> None:
		player.play_chord_with_mode(notes)
		display.update(notes, config.mode, config.bpm, config.pattern)

	def _finish () -> None:
		player.stop_playback()
		display.update(None, config.mode, config.bpm)
		finished.set()

	for index, chord in enumerate(config.progression):
		timers.call_later(index * chord_ms, lambda notes=chord: _chord_change(notes))

	timers.call_later(len(config.progression) * chord_ms, _finish)

	logger.info(f"Playing {len(config.progression)} chords at {config.bpm:.1f} BPM in {config.mode!r} mode")

	await timers.start()

	try:
		await finished.wait()
	finally:
		await timers.stop()
		performer.close()
		display.close()


def main () -> None:

	"""
	Entry point: ``python -m comper [config.yaml]``.
	"""

	config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.yaml'
	config = comper.config.load_config(config_path)

	device_name, output = comper.midi_utils.select_output_device(config.device_name)

	if output is None:
		logger.error("No MIDI output available - nothing to play.")
		sys.exit(1)

	try:
		asyncio.run(perform(config, output))
	except KeyboardInterrupt:
		logger.info("Stopping...")
	finally:
		output.close()
		logger.info(f"Closed MIDI output: {device_name}")


if __name__ == "__main__":
	main()
