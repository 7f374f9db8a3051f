import typing

import mido
import pytest

import comper.timer_queue


class FakeMidiOut:

	"""MIDI output stub that records what was sent."""

	def __init__ (self) -> None:

		self.sent: typing.List[mido.Message] = []
		self.panicked = False
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record outgoing MIDI messages."""

		self.sent.append(message)

	def close (self) -> None:

		self.closed = True

	def panic (self) -> None:

		self.panicked = True

	def notes_on (self) -> typing.List[int]:

		"""Note numbers of every note_on sent, in order."""

		return [m.note for m in self.sent if m.type == 'note_on']

	def notes_off (self) -> typing.List[int]:

		"""Note numbers of every note_off sent, in order."""

		return [m.note for m in self.sent if m.type == 'note_off']

	def clear (self) -> None:

		self.sent = []


class FixedRandom:

	"""Random source that replays a fixed cycle of values."""

	def __init__ (self, values: typing.List[float]) -> None:

		self.values = values
		self.calls = 0

	def random (self) -> float:

		value = self.values[self.calls % len(self.values)]
		self.calls += 1
		return value


# Module-level reference so tests can reach the port opened through patch_midi.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	_current_fake_output = FakeMidiOut()
	return _current_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def midi_out () -> FakeMidiOut:

	"""A fresh recording MIDI output."""

	return FakeMidiOut()


@pytest.fixture
def timers () -> comper.timer_queue.TimerQueue:

	"""A timer queue in simulated time."""

	return comper.timer_queue.TimerQueue()
