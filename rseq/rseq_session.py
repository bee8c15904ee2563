"""
Interpretation session: the sixteen track slots for one input file and the
pass loop that runs them to completion.
"""

from typing import List, Optional

from rseq_interpreter import TrackInterpreter
from label_table import LabelTable
from rseq_track import Track, TrackState
from seq_base import ConversionOptions, ReadFault, StepBudgetExceeded, UnknownOpcodeError, TRACK_COUNT


class InterpretationSession:
    """Converts one sequence's bytecode into per-track MIDI event buffers.

    Tracks are run in passes, ascending by index. Each running track is
    executed to its end before the next index is looked at; a track split
    off to a lower index than the issuer runs in the following pass. The
    loop ends when a pass finds no running track.
    """

    def __init__(self, data: bytes, base: int, entry_offset: int,
                 labels: Optional[LabelTable] = None,
                 options: Optional[ConversionOptions] = None,
                 verbose: bool = False):
        self.data = data
        self.base = base
        self.entry_offset = entry_offset
        self.labels = labels or LabelTable()
        self.options = options or ConversionOptions()
        self.verbose = verbose
        self.log: List[str] = []
        self.tracks = [Track(i) for i in range(TRACK_COUNT)]
        self.interpreter = TrackInterpreter(data, base, self.labels, self.options,
                                            self.activate_track, self.log)

    def activate_track(self, issuer: Track, index: int, address: int) -> str:
        """Handle a Split command from `issuer`; returns what was done."""
        if not 0 <= index < TRACK_COUNT:
            self.interpreter.warn(issuer, f"Split to invalid track {index} ignored")
            return "invalid track"
        target = self.tracks[index]
        if target is issuer:
            self.interpreter.warn(issuer, "Split to the issuing track ignored")
            return "self, ignored"
        if target.state == TrackState.ENDED:
            self.interpreter.warn(issuer, f"Split to finished track {index:02d} ignored")
            return "ended, ignored"
        restarted = target.state == TrackState.RUNNING
        target.start(address)
        self.log.append(f"Trk {index:02d}  started from 0x{address:X}")
        return "restarted" if restarted else "started"

    def _close_track(self, track: Track, reason: str):
        """End a track after a fatal read/opcode error, keeping its output valid."""
        self.interpreter.warn(track, reason)
        track.end(self.options.ring_out_notes)

    def run(self) -> List[Track]:
        """Run all tracks to completion and return the slot list."""
        self.log.append(f"Begin decoding at 0x{self.entry_offset:X}")
        self.tracks[0].start(self.entry_offset)
        self.log.append(f"Trk 00  started from 0x{self.entry_offset:X}")

        while any(t.state == TrackState.RUNNING for t in self.tracks):
            for track in self.tracks:
                if track.state != TrackState.RUNNING:
                    continue
                try:
                    self.interpreter.run(track)
                except UnknownOpcodeError as e:
                    self._close_track(track, str(e))
                except StepBudgetExceeded as e:
                    self._close_track(track, str(e))
                except ReadFault as e:
                    self._close_track(track, f"Read fault: {e}")

                self.log.append(f"Trk {track.index:02d}  OK")
                if self.verbose:
                    print(f"  Track {track.index:02d} OK")

        return self.tracks

    def finished_buffers(self) -> List[bytes]:
        """Non-empty track buffers in ascending track order."""
        return [t.event_buffer for t in self.tracks if t.event_buffer]
