"""Timing and pitch constants shared across the comping engine.

All times are in **milliseconds**. Note values are MIDI note numbers
(C4 = 60 = Middle C).

- `DEFAULT_ROOT = 60`: root reported for an empty chord
- `STRIDE_BASS_FLOOR = 24`: lowest note stride mode will drop its bass to (C1)
- `MAX_HUMANIZE_DELAY = 150`: largest humanize offset at 100% humanization
- `MAX_STRUM_SPREAD = 200`: widest strum a performer will apply
- `REARTICULATION_DELAY_MS = 5`: gap between note-off and note-on on a retrigger
"""

MS_PER_MINUTE = 60000

# Beat subdivisions, as fractions of one beat.

SIXTEENTH = 0.25
EIGHTH = 0.5
DOTTED_QUARTER = 1.5

DEFAULT_ROOT = 60
STRIDE_BASS_FLOOR = 24

MAX_HUMANIZE_DELAY = 150
MAX_STRUM_SPREAD = 200
REARTICULATION_DELAY_MS = 5

# Custom grid limits (rows = chord notes, columns = 16th-note steps in a bar).

CUSTOM_PATTERN_MAX_ROWS = 8
CUSTOM_PATTERN_MAX_COLS = 16

MIDI_CHANNELS = 16
CC_ALL_SOUND_OFF = 120
CC_ALL_NOTES_OFF = 123
