"""
Shared constants, opcode tables, errors and options for RSEQ conversion.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional

import yaml


# Global constants
NOTE_NAMES = ["C ", "C#", "D ", "D#", "E ", "F ", "F#",
              "G ", "G#", "A ", "A#", "B "]

# General MIDI instrument names for reference
GM_INSTRUMENTS = [
    "Acoustic Grand Piano", "Bright Acoustic Piano", "Electric Grand Piano", "Honky-tonk Piano",
    "Electric Piano 1", "Electric Piano 2", "Harpsichord", "Clavi",
    "Celesta", "Glockenspiel", "Music Box", "Vibraphone",
    "Marimba", "Xylophone", "Tubular Bells", "Dulcimer",
    "Drawbar Organ", "Percussive Organ", "Rock Organ", "Church Organ",
    "Reed Organ", "Accordion", "Harmonica", "Tango Accordion",
    "Acoustic Guitar (nylon)", "Acoustic Guitar (steel)", "Electric Guitar (jazz)", "Electric Guitar (clean)",
    "Electric Guitar (muted)", "Overdriven Guitar", "Distortion Guitar", "Guitar harmonics",
    "Acoustic Bass", "Electric Bass (finger)", "Electric Bass (pick)", "Fretless Bass",
    "Slap Bass 1", "Slap Bass 2", "Synth Bass 1", "Synth Bass 2",
    "Violin", "Viola", "Cello", "Contrabass",
    "Tremolo Strings", "Pizzicato Strings", "Orchestral Harp", "Timpani",
    "String Ensemble 1", "String Ensemble 2", "SynthStrings 1", "SynthStrings 2",
    "Choir Aahs", "Voice Oohs", "Synth Voice", "Orchestra Hit",
    "Trumpet", "Trombone", "Tuba", "Muted Trumpet",
    "French Horn", "Brass Section", "SynthBrass 1", "SynthBrass 2",
    "Soprano Sax", "Alto Sax", "Tenor Sax", "Baritone Sax",
    "Oboe", "English Horn", "Bassoon", "Clarinet",
    "Piccolo", "Flute", "Recorder", "Pan Flute",
    "Blown Bottle", "Shakuhachi", "Whistle", "Ocarina",
    "Lead 1 (square)", "Lead 2 (sawtooth)", "Lead 3 (calliope)", "Lead 4 (chiff)",
    "Lead 5 (charang)", "Lead 6 (voice)", "Lead 7 (fifths)", "Lead 8 (bass + lead)",
    "Pad 1 (new age)", "Pad 2 (warm)", "Pad 3 (polysynth)", "Pad 4 (choir)",
    "Pad 5 (bowed)", "Pad 6 (metallic)", "Pad 7 (halo)", "Pad 8 (sweep)",
    "FX 1 (rain)", "FX 2 (soundtrack)", "FX 3 (crystal)", "FX 4 (atmosphere)",
    "FX 5 (brightness)", "FX 6 (goblins)", "FX 7 (echoes)", "FX 8 (sci-fi)",
    "Sitar", "Banjo", "Shamisen", "Koto",
    "Kalimba", "Bag pipe", "Fiddle", "Shanai",
    "Tinkle Bell", "Agogo", "Steel Drums", "Woodblock",
    "Taiko Drum", "Melodic Tom", "Synth Drum", "Reverse Cymbal",
    "Guitar Fret Noise", "Breath Noise", "Seashore", "Bird Tweet",
    "Telephone Ring", "Helicopter", "Applause", "Gunshot"
]

TRACK_COUNT = 16
DEFAULT_TICKS_PER_QUARTER = 96

# MIDI status bytes (channel is OR'ed in by the emitter)
MIDI_NOTE_ON = 0x90
MIDI_CONTROL = 0xB0
MIDI_PROGRAM = 0xC0
MIDI_PITCH_BEND = 0xE0
MIDI_META = 0xFF

# Meta event types
META_MARKER = 0x06
META_END_OF_TRACK = 0x2F
META_TEMPO = 0x51

# Controller numbers
CC_MODULATION = 0x01
CC_PORTAMENTO_TIME = 0x05
CC_DATA_ENTRY = 0x06
CC_VOLUME = 0x07
CC_PAN = 0x0A
CC_EXPRESSION = 0x0B
CC_MOD_DELAY = 0x10
CC_MOD_SPEED = 0x11
CC_MOD_RANGE = 0x12
CC_MOD_TYPE = 0x21
CC_DEBUG_VALUE = 0x26
CC_PORTAMENTO = 65
CC_PORTAMENTO_CONTROL = 84
CC_NRPN_LSB = 0x62
CC_NRPN_MSB = 0x63
CC_RPN_LSB = 0x64
CC_RPN_MSB = 0x65
CC_LOOP_MARKER = 0x6F
CC_DEBUG_OPCODE = 0x70

# Sequence opcodes (0x00-0x7F are implicit note-ons)
OP_WAIT = 0x80
OP_PROGRAM = 0x81
OP_SPLIT = 0x88
OP_JUMP = 0x89
OP_CALL = 0x8A
OP_PAN = 0xC0
OP_VOLUME = 0xC1
OP_MASTER_VOLUME = 0xC2
OP_TRANSPOSE = 0xC3
OP_PITCH_BEND = 0xC4
OP_BEND_RANGE = 0xC5
OP_MOD_DEPTH = 0xCA
OP_DECAY = 0xD1
OP_LOOP_START = 0xD4
OP_EXPRESSION = 0xD5
OP_MOD_DELAY = 0xE0
OP_TEMPO = 0xE1
OP_LOOP_END = 0xFC
OP_RETURN = 0xFD
OP_END = 0xFF

# Opcode names
OPCODE_NAMES = {
    0x80: 'Wait', 0x81: 'Program Change',
    0x88: 'Split', 0x89: 'Jump', 0x8A: 'Call',
    0xB0: 'Unknown B0',
    0xC0: 'Pan', 0xC1: 'Volume', 0xC2: 'Master Volume',
    0xC3: 'Transpose', 0xC4: 'Pitch Bend', 0xC5: 'Bend Range',
    0xC6: 'Priority', 0xC7: 'Polyphony', 0xC8: 'Tie',
    0xC9: 'Portamento Control', 0xCA: 'Mod Depth', 0xCB: 'Mod Speed',
    0xCC: 'Mod Type', 0xCD: 'Mod Range', 0xCE: 'Portamento',
    0xCF: 'Portamento Time',
    0xD0: 'Attack', 0xD1: 'Decay', 0xD2: 'Sustain', 0xD3: 'Release',
    0xD4: 'Loop Start', 0xD5: 'Expression', 0xD6: 'Print',
    0xD8: 'Unknown D8', 0xD9: 'Unknown D9', 0xDA: 'Unknown DA', 0xDB: 'Unknown DB',
    0xE0: 'Mod Delay', 0xE1: 'Tempo', 0xE3: 'Sweep',
    0xFC: 'Loop End', 0xFD: 'Return', 0xFE: 'Track Usage',
    0xFF: 'End of Track'
}

# Opcodes mapped straight onto a single controller, always emitted
CONTROLLER_OPCODES = {
    OP_PAN: CC_PAN,
    OP_VOLUME: CC_VOLUME,
    OP_EXPRESSION: CC_EXPRESSION,
    OP_MOD_DEPTH: CC_MODULATION,
    0xC9: CC_PORTAMENTO_CONTROL,
    0xCE: CC_PORTAMENTO,
    0xCF: CC_PORTAMENTO_TIME,
}

# Opcodes mapped onto a single controller only when debug controllers are on
DEBUG_CONTROLLER_OPCODES = {
    0xCB: CC_MOD_SPEED,
    0xCC: CC_MOD_TYPE,
    0xCD: CC_MOD_RANGE,
}

# Opcodes with no MIDI meaning: argument width in bytes. With debug
# controllers on they emit the opcode/argument controller pair.
DIAGNOSTIC_OPCODES = {
    0xB0: 1,
    0xC2: 1, 0xC6: 1, 0xC7: 1, 0xC8: 1,
    0xD0: 1, 0xD2: 1, 0xD3: 1, 0xD6: 1,
    0xD8: 1, 0xD9: 1, 0xDA: 1, 0xDB: 1,
    0xE3: 2, 0xFE: 2,
}


class RseqError(Exception):
    """Base class for conversion errors."""


class StructuralError(RseqError):
    """Container is not a usable RSEQ file (bad magic, missing DATA chunk)."""


class ReadFault(RseqError):
    """Bytecode read ran off the end of the data."""


class StepBudgetExceeded(ReadFault):
    """A track executed more opcodes than the configured budget allows."""


class UnknownOpcodeError(RseqError):
    """Opcode byte with no known argument width."""

    def __init__(self, opcode: int, offset: int):
        super().__init__(f"Unknown command {opcode:02X} at 0x{offset:X}")
        self.opcode = opcode
        self.offset = offset


class OutputWriteError(RseqError):
    """Output MIDI file could not be created or written."""


@dataclass
class ConversionOptions:
    """Switches for one conversion run."""
    ignore_jumps: bool = False  # Skip every jump, continuing past it
    debug_controllers: bool = False  # Emit controllers for otherwise silent opcodes
    output_dir: Optional[str] = None  # None = write next to the input file
    write_disassembly: bool = False  # Also write <name>.txt with the opcode log
    ring_out_notes: bool = False  # Let notes sounding at track end run to their full duration
    max_steps: int = 1_000_000  # Per-track opcode budget, 0 = unlimited
    ticks_per_quarter: int = DEFAULT_TICKS_PER_QUARTER

    @classmethod
    def from_dict(cls, values: Dict) -> 'ConversionOptions':
        """Build options from a config mapping, rejecting unknown keys and bad values."""
        known = {f.name: f.type for f in fields(cls)}
        for key, value in values.items():
            if key not in known:
                raise ValueError(f"Unknown config option: {key}")
            kind = known[key]
            if kind is bool:
                ok = isinstance(value, bool)
            elif kind is int:
                # bool is an int subclass
                ok = isinstance(value, int) and not isinstance(value, bool) and value >= 0
            else:
                ok = value is None or isinstance(value, str)
            if key == 'ticks_per_quarter' and ok:
                ok = 0 < value < 0x8000
            if not ok:
                raise ValueError(f"Invalid value for config option {key}: {value!r}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, config_path: str) -> 'ConversionOptions':
        """Load options from a YAML config file."""
        with open(config_path, 'r') as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(config, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        return cls.from_dict(config)

    def output_path_for(self, input_path: str) -> Path:
        """Return the .mid path for an input file."""
        source = Path(input_path)
        name = source.with_suffix('.mid').name
        if self.output_dir:
            return Path(self.output_dir) / name
        return source.parent / name
