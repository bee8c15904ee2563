"""
Sequence bytecode interpreter for a single track.

Command set (0x00-0x7F are implicit note-ons: key, velocity, var-len duration):
    80 Wait [var-len]          C5 Bend range            D4 Loop start marker
    81 Program [1-3 bytes]     C6 Priority              D5 Expression
    88 Split [track, offset]   C7 Polyphony             D6 Print
    89 Jump [offset]           C8 Tie                   D8-DB Unknown
    8A Call [offset]           C9 Portamento control    E0 Mod delay [16-bit]
    B0 Unknown                 CA Mod depth             E1 Tempo [16-bit]
    C0 Pan                     CB Mod speed             E3 Sweep [16-bit]
    C1 Volume                  CC Mod type              FC Loop end marker
    C2 Master volume           CD Mod range             FD Return
    C3 Transpose               CE Portamento            FE Track usage [16-bit]
    C4 Pitch bend              CF Portamento time       FF End of track
                               D0-D3 Attack/Decay/Sustain/Release

Offsets inside Split/Jump/Call are 24-bit big-endian, relative to the
bytecode base.
"""

import sys
from typing import Callable, List, Optional

from offset_reader import OffsetReader
from label_table import LabelTable
from jump_policy import JumpAction, JumpDecision, direction_policy
from rseq_track import Track, TrackState
from seq_base import (
    ConversionOptions, NOTE_NAMES, GM_INSTRUMENTS, OPCODE_NAMES,
    CONTROLLER_OPCODES, DEBUG_CONTROLLER_OPCODES, DIAGNOSTIC_OPCODES,
    META_MARKER, CC_LOOP_MARKER, CC_DEBUG_OPCODE, CC_DEBUG_VALUE, CC_MOD_DELAY,
    OP_WAIT, OP_PROGRAM, OP_SPLIT, OP_JUMP, OP_CALL, OP_TRANSPOSE,
    OP_PITCH_BEND, OP_BEND_RANGE, OP_DECAY, OP_LOOP_START, OP_LOOP_END,
    OP_MOD_DELAY, OP_TEMPO, OP_RETURN, OP_END,
    StepBudgetExceeded, UnknownOpcodeError,
)


def note_name(key: int) -> str:
    return f"{NOTE_NAMES[key % 12].strip()}{key // 12 - 1}"


class TrackInterpreter:
    """Runs track bytecode, writing MIDI events into each track's emitter.

    Args:
        data: Whole RSEQ file
        base: Absolute offset of the bytecode region
        labels: Label table (offsets relative to base)
        options: Conversion switches
        activate: Called as activate(issuer, target_index, address) for Split
        log: Diagnostic line list to append to
        jump_policy: Callable deciding what to do with a Jump
    """

    def __init__(self, data: bytes, base: int, labels: LabelTable,
                 options: ConversionOptions,
                 activate: Callable[[Track, int, int], str],
                 log: Optional[List[str]] = None,
                 jump_policy: Callable[[int, int, bool], JumpDecision] = direction_policy):
        self.reader = OffsetReader(data)
        self.base = base
        self.labels = labels
        self.options = options
        self.activate = activate
        self.log = log if log is not None else []
        self.jump_policy = jump_policy
        self._branch: Optional[int] = None

    def warn(self, track: Track, message: str):
        line = f"Trk {track.index:02d}  WARNING: {message}"
        self.log.append(line)
        print(f"  {line}", file=sys.stderr)

    def run(self, track: Track):
        """Step the track until it leaves the running state."""
        while track.state == TrackState.RUNNING:
            self.step(track)

    def step(self, track: Track):
        """Execute one command at the track's read cursor."""
        if self.options.max_steps and track.steps >= self.options.max_steps:
            raise StepBudgetExceeded(
                f"Track {track.index:02d} exceeded {self.options.max_steps} steps")
        track.steps += 1

        reader = self.reader
        start = track.read_cursor
        reader.seek(start)

        label = self.labels.get(start - self.base)
        if label is not None:
            track.emitter.emit_meta(META_MARKER, label)
            self.log.append(f"Trk {track.index:02d}  {start:08X}:  "
                            f"Label '{self.labels.describe(start - self.base)}'")

        self._branch = None
        cmd = reader.read_byte()
        if cmd < 0x80:
            detail = self._note_on(track, cmd)
        else:
            detail = self._command(track, cmd, start)

        operands_end = reader.tell()
        raw = ' '.join(f"{b:02X}" for b in reader.data[start:operands_end])
        self.log.append(f"Trk {track.index:02d}  {start:08X}:  {raw:<14} {detail}")

        track.read_cursor = self._branch if self._branch is not None else operands_end

    def _jump_to(self, address: int):
        self._branch = address

    def _note_on(self, track: Track, key: int) -> str:
        velocity = self.reader.read_byte()
        duration = self.reader.read_varint()
        track.note_on(key, velocity, duration)
        return f"Note {note_name(key):<4} ({key:3d}) Vel {velocity:3d} Dur {duration}"

    def _command(self, track: Track, cmd: int, start: int) -> str:
        reader = self.reader
        emitter = track.emitter
        name = OPCODE_NAMES.get(cmd, f"OP_{cmd:02X}")

        if cmd == OP_WAIT:
            ticks = reader.read_varint()
            track.wait(ticks)
            return f"{name} {ticks}"

        elif cmd == OP_PROGRAM:
            c = reader.read_byte()
            program = c & 0x7F
            emitter.emit_program(program)
            # Up to two bank select bytes follow while the top bit is set
            if c & 0x80:
                c = reader.read_byte()
            if c & 0x80:
                c = reader.read_byte()
            return f"{name} {program} ({GM_INSTRUMENTS[program]})"

        elif cmd == OP_SPLIT:
            target = reader.read_be(1)
            address = self.base + reader.read_be(3)
            result = self.activate(track, target, address)
            return f"{name} track {target:02d} at 0x{address:X} ({result})"

        elif cmd == OP_JUMP:
            address = self.base + reader.read_be(3)
            decision = self.jump_policy(address, reader.tell(), self.options.ignore_jumps)
            emitter.emit_meta(META_MARKER, decision.annotation.encode('ascii'))
            if decision.action == JumpAction.TAKE:
                self._jump_to(address)
            elif decision.action == JumpAction.END_TRACK:
                track.end(self.options.ring_out_notes)
            return f"{decision.annotation} to 0x{address:X}"

        elif cmd == OP_CALL:
            address = self.base + reader.read_be(3)
            track.return_address = reader.tell()
            self._jump_to(address)
            return f"{name} 0x{address:X} (return 0x{track.return_address:X})"

        elif cmd == OP_RETURN:
            if track.return_address:
                address = track.return_address
                track.return_address = 0
                self._jump_to(address)
                return f"{name} to 0x{address:X}"
            return f"{name} (no return address)"

        elif cmd in CONTROLLER_OPCODES:
            value = reader.read_byte()
            emitter.emit_controller(CONTROLLER_OPCODES[cmd], value)
            return f"{name} {value}"

        elif cmd in DEBUG_CONTROLLER_OPCODES:
            value = reader.read_byte()
            if self.options.debug_controllers:
                emitter.emit_controller(DEBUG_CONTROLLER_OPCODES[cmd], value)
            return f"{name} {value}"

        elif cmd in DIAGNOSTIC_OPCODES:
            value = reader.read_be(DIAGNOSTIC_OPCODES[cmd])
            if self.options.debug_controllers:
                emitter.emit_controller(CC_DEBUG_OPCODE, cmd & 0x7F)
                emitter.emit_controller(CC_DEBUG_VALUE, value & 0x7F)
            return f"{name} {value}"

        elif cmd == OP_TRANSPOSE:
            value = reader.read_byte()
            track.transpose = value - 0x100 if value >= 0x80 else value
            # Passed through as a vendor NRPN; note keys are never shifted
            emitter.emit_nrpn(0x02, 0x00, value)
            return f"{name} {track.transpose:+d}"

        elif cmd == OP_PITCH_BEND:
            value = reader.read_byte()
            emitter.emit_pitch_bend(value)
            return f"{name} {value - 0x100 if value >= 0x80 else value:+d}"

        elif cmd == OP_BEND_RANGE:
            value = reader.read_byte()
            emitter.emit_bend_range(value)
            return f"{name} {value}"

        elif cmd == OP_DECAY:
            value = reader.read_byte()
            if self.options.debug_controllers:
                emitter.emit_nrpn(0x64, 0x01, value)
            return f"{name} {value}"

        elif cmd == OP_LOOP_START or cmd == OP_LOOP_END:
            emitter.emit_controller(CC_LOOP_MARKER, 0 if cmd == OP_LOOP_START else 1)
            return name

        elif cmd == OP_MOD_DELAY:
            value = reader.read_be(2)
            if self.options.debug_controllers:
                emitter.emit_controller(CC_MOD_DELAY, value & 0x7F)
            return f"{name} {value}"

        elif cmd == OP_TEMPO:
            bpm = reader.read_be(2)
            if bpm == 0:
                self.warn(track, f"Tempo of 0 at 0x{start:X} skipped")
            else:
                emitter.emit_tempo(bpm)
            return f"{name} {bpm} bpm"

        elif cmd == OP_END:
            track.end(self.options.ring_out_notes)
            return name

        raise UnknownOpcodeError(cmd, start)
