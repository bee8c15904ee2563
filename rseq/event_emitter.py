"""
Per-track MIDI event encoder.

Every event is written as <delta time><status|channel><args...> into the
track's own MTrk byte buffer. Pending wait ticks are accumulated and only
written out as the delta of the next event.
"""

from typing import Iterable

from midiutil.MidiFile import writeVarLength

from seq_base import (
    MIDI_NOTE_ON, MIDI_CONTROL, MIDI_PROGRAM, MIDI_PITCH_BEND, MIDI_META,
    META_TEMPO, META_END_OF_TRACK,
    CC_DATA_ENTRY, CC_RPN_MSB, CC_RPN_LSB, CC_NRPN_MSB, CC_NRPN_LSB,
)


class EventEmitter:
    """Accumulates the encoded MTrk body for one channel."""

    def __init__(self, channel: int):
        self.channel = channel
        self.data = bytearray()
        self.wait_accumulated = 0
        self.rpn_armed = False

    def reset(self):
        self.data.clear()
        self.wait_accumulated = 0
        self.rpn_armed = False

    def add_wait(self, ticks: int):
        """Defer `ticks` until the next event is written."""
        self.wait_accumulated += ticks

    def flush_delta(self):
        """Write the pending wait as a variable-length delta and clear it."""
        self.data.extend(writeVarLength(self.wait_accumulated))
        self.wait_accumulated = 0

    def emit_event(self, status: int, args: Iterable[int] = ()):
        self.flush_delta()
        self.data.append(status | self.channel)
        self.data.extend(a & 0xFF for a in args)

    def emit_note_on(self, key: int, velocity: int):
        self.emit_event(MIDI_NOTE_ON, (key, velocity))

    def emit_note_off(self, key: int):
        # Note-on with zero velocity, so running notes share one status type
        self.emit_event(MIDI_NOTE_ON, (key, 0))

    def emit_controller(self, number: int, value: int):
        self.emit_event(MIDI_CONTROL, (number, value))

    def emit_program(self, value: int):
        self.emit_event(MIDI_PROGRAM, (value & 0x7F,))

    def emit_pitch_bend(self, raw: int):
        """Scale a signed 8-bit bend (-128..127) onto the 14-bit bend range."""
        if raw >= 0x80:
            raw -= 0x100
        value = 0x2000 + raw * 16384 // 256
        self.emit_event(MIDI_PITCH_BEND, (value & 0x7F, value >> 7))

    def emit_bend_range(self, semitones: int):
        """Pitch bend sensitivity (RPN 0,0).

        The select pair is written whenever rpn_armed is clear, and the flag
        is cleared again after the data entry, so every call produces the
        full three-controller sequence.
        """
        if not self.rpn_armed:
            self.rpn_armed = True
            self.emit_controller(CC_RPN_MSB, 0)
            self.emit_controller(CC_RPN_LSB, 0)
        self.emit_controller(CC_DATA_ENTRY, semitones)
        self.rpn_armed = False

    def emit_rpn(self, msb: int, lsb: int, value: int):
        self.emit_controller(CC_RPN_MSB, msb)
        self.emit_controller(CC_RPN_LSB, lsb)
        self.emit_controller(CC_DATA_ENTRY, value)
        self.rpn_armed = False

    def emit_nrpn(self, msb: int, lsb: int, value: int):
        self.emit_controller(CC_NRPN_MSB, msb)
        self.emit_controller(CC_NRPN_LSB, lsb)
        self.emit_controller(CC_DATA_ENTRY, value)
        self.rpn_armed = False

    def emit_tempo(self, raw: int):
        """Tempo in BPM -> microseconds per quarter note (Set Tempo meta)."""
        if raw <= 0:
            raise ValueError(f"Tempo must be positive, got {raw}")
        usec = 60_000_000 // raw
        self.emit_meta(META_TEMPO, bytes([(usec >> 16) & 0xFF, (usec >> 8) & 0xFF, usec & 0xFF]))

    def emit_meta(self, kind: int, payload: bytes):
        self.flush_delta()
        self.data.append(MIDI_META)
        self.data.append(kind)
        self.data.extend(writeVarLength(len(payload)))
        self.data.extend(payload)

    def emit_end_of_track(self):
        self.emit_meta(META_END_OF_TRACK, b'')
