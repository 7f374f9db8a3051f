import logging
import typing

import mido


logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open the MIDI output the performer will play through.

	- With ``device_name``, opens exactly that port.
	- Without it, uses the only available port, or asks on the console when
	  there are several.

	Returns:
		``(device_name, port)``, or ``(None, None)`` if nothing could be opened.
		Failures are logged, never raised.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None:

			if device_name not in outputs:
				logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
				return None, None

			port = mido.open_output(device_name)
			logger.info(f"Opened MIDI output: {device_name}")
			return device_name, port

		if len(outputs) == 1:
			port = mido.open_output(outputs[0])
			logger.info(f"One MIDI output found - using '{outputs[0]}'")
			return outputs[0], port

		selected_name = _prompt_for_device(outputs)
		port = mido.open_output(selected_name)
		logger.info(f"Opened MIDI output: {selected_name}")

		print("\nTip: to skip this prompt, set the device in config.yaml:\n")
		print("  midi:")
		print(f"    device_name: \"{selected_name}\"\n")

		return selected_name, port

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


def _prompt_for_device (outputs: typing.List[str]) -> str:

	"""Ask on the console which of several outputs to use."""

	print("\nAvailable MIDI output devices:\n")

	for i, name in enumerate(outputs, 1):
		print(f"  {i}. {name}")

	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(outputs)}): "))
			if 1 <= choice <= len(outputs):
				return outputs[choice - 1]
		except ValueError:
			pass

		print(f"Enter a number between 1 and {len(outputs)}.")
