"""
Tracks the notes sounding on one track and writes their note-offs at the
right tick while time is advanced.
"""

from dataclasses import dataclass
from typing import List

from event_emitter import EventEmitter


@dataclass
class Note:
    """A sounding note; end_tick is absolute within the owning track."""
    key: int
    end_tick: int


class NoteScheduler:
    """Ordered set of sounding notes plus the track's tick position.

    The list is re-sorted by end tick on every wait. Python's sort is
    stable, so notes ending on the same tick go off in the order they
    started.
    """

    def __init__(self, emitter: EventEmitter):
        self.emitter = emitter
        self.local_time = 0
        self.sounding: List[Note] = []

    def reset(self):
        self.local_time = 0
        self.sounding.clear()

    def add(self, key: int, duration: int):
        self.sounding.append(Note(key, self.local_time + duration))

    def advance(self, ticks: int):
        """Move forward `ticks`, writing note-offs for notes that end on the way."""
        self.sounding.sort(key=lambda n: n.end_tick)
        target = self.local_time + ticks

        while self.sounding and self.sounding[0].end_tick <= target:
            note = self.sounding.pop(0)
            delta = note.end_tick - self.local_time
            self.emitter.add_wait(delta)
            self.emitter.emit_note_off(note.key)
            self.local_time += delta
            ticks -= delta

        self.local_time += ticks
        self.emitter.add_wait(ticks)

    def flush_all(self, ring_out: bool = False):
        """Release every sounding note, in end-tick order.

        By default all notes stop at the current position. With
        ring_out=True time advances to each note's end tick instead.
        """
        if not self.sounding:
            return
        if ring_out:
            last_end = max(n.end_tick for n in self.sounding)
            self.advance(last_end - self.local_time)
            return
        self.sounding.sort(key=lambda n: n.end_tick)
        for note in self.sounding:
            self.emitter.emit_note_off(note.key)
        self.sounding.clear()
