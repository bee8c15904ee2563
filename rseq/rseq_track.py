"""
One of the sixteen sequence tracks: a bytecode cursor plus its MIDI output.
"""

from enum import Enum

from event_emitter import EventEmitter
from note_scheduler import NoteScheduler


class TrackState(Enum):
    """Lifecycle of a track within one conversion."""
    INERT = "inert"
    RUNNING = "running"
    ENDED = "ended"


class Track:
    """Cursor and output state for a single track.

    The track index doubles as the MIDI channel. return_address holds a
    single pending call return (0 = none); a second call overwrites it.
    """

    def __init__(self, index: int):
        self.index = index
        self.state = TrackState.INERT
        self.transpose = 0
        self.read_cursor = 0
        self.return_address = 0
        self.steps = 0
        self.emitter = EventEmitter(index)
        self.notes = NoteScheduler(self.emitter)

    @property
    def active(self) -> bool:
        return self.state == TrackState.RUNNING

    @property
    def local_time(self) -> int:
        return self.notes.local_time

    @property
    def event_buffer(self) -> bytes:
        return bytes(self.emitter.data)

    def start(self, address: int):
        """Begin (or restart) execution at an absolute bytecode offset."""
        self.state = TrackState.RUNNING
        self.transpose = 0
        self.read_cursor = address
        self.return_address = 0
        self.steps = 0
        self.emitter.reset()
        self.notes.reset()

    def note_on(self, key: int, velocity: int, duration: int):
        self.emitter.emit_note_on(key, velocity)
        self.notes.add(key, duration)

    def wait(self, ticks: int):
        self.notes.advance(ticks)

    def end(self, ring_out: bool = False):
        """Release all sounding notes, write end-of-track and go inactive."""
        self.notes.flush_all(ring_out)
        self.emitter.emit_end_of_track()
        self.state = TrackState.ENDED
