"""
Comper - a real-time chord comping engine for Python.

Hold a chord, pick a rhythmic playback mode, and Comper decides when each
note sounds: a stride bass on 1 and 3 with the chord on 2 and 4, a bossa
root-fifth-chord figure, a Charleston anticipation, a tremolo on 16ths, or a
grid you draw yourself. Everything is synchronised to a BPM clock, with
optional humanized or strummed note onsets, and a keyboard-highlight state
that stays in step with the sound even when the player changes chords
mid-pattern.

What it is made of:

- **Chord analysis.** ``extract_chord_components()`` finds the root, 3rd,
  5th, 7th and upper notes of any voicing.
- **Playback modes.** ``apply_playback_mode()`` turns a chord, a mode and a
  tempo into a declarative schedule - notes to sound now plus timed groups
  that either replace or add to them.
- **Humanize and strum.** ``get_humanize_offsets()`` and
  ``get_strum_offsets()`` spread a chord's onsets; ``HumanizeManager`` fires
  them and cancels the ones still waiting when the chord changes.
- **Timer queue.** ``TimerQueue`` orders every deferred callback by
  deadline. Drive it in simulated time with ``advance()`` or in real time
  on an asyncio loop with ``start()``.
- **Display sync.** ``DisplaySynchronizer`` replays the schedule into an
  observable ``active_notes`` list for a keyboard view.
- **MIDI out.** ``ChordPerformer`` and ``ModePlayer`` send the result to any
  ``mido`` output port.

Minimal example:

    ```python
    import comper

    timers = comper.TimerQueue()
    display = comper.DisplaySynchronizer(timers)
    display.on_change(print)

    display.update([62, 65, 69, 72], "two-feel", bpm=120)   # [62]
    timers.advance(500)                                      # [65, 69, 72]
    timers.advance(500)                                      # [69]
    ```

Run ``python -m comper config.yaml`` to play a progression on a MIDI port.
"""

import comper.chord_components
import comper.custom_pattern
import comper.display
import comper.humanize
import comper.performer
import comper.playback_modes
import comper.strum
import comper.timer_queue


ChordComponents = comper.chord_components.ChordComponents
extract_chord_components = comper.chord_components.extract_chord_components
CustomPlaybackPattern = comper.custom_pattern.CustomPlaybackPattern
DisplaySynchronizer = comper.display.DisplaySynchronizer
HumanizeManager = comper.humanize.HumanizeManager
get_humanize_offsets = comper.humanize.get_humanize_offsets
ChordPerformer = comper.performer.ChordPerformer
ModePlayer = comper.performer.ModePlayer
PlaybackModeResult = comper.playback_modes.PlaybackModeResult
ScheduledNoteGroup = comper.playback_modes.ScheduledNoteGroup
apply_playback_mode = comper.playback_modes.apply_playback_mode
mode_requires_bpm = comper.playback_modes.mode_requires_bpm
get_strum_offsets = comper.strum.get_strum_offsets
TimerQueue = comper.timer_queue.TimerQueue
