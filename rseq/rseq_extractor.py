"""
Conversion orchestrator.
Handles RSEQ loading, interpretation, MIDI/listing output and batch processing.
"""

import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from rseq_container import RseqFile, load_rseq, parse_rseq
from rseq_session import InterpretationSession
from rseq_midi_writer import assemble_midi, write_midi, disassemble_to_text
from seq_base import ConversionOptions, OutputWriteError, RseqError


@dataclass
class ConversionResult:
    """Outcome of converting one RSEQ file."""
    source: str
    midi_data: bytes
    track_count: int
    log: List[str] = field(default_factory=list)
    output_path: Optional[Path] = None
    listing_path: Optional[Path] = None


class RseqConverter:
    """Main converter class."""

    def __init__(self, options: Optional[ConversionOptions] = None, verbose: bool = True):
        self.options = options or ConversionOptions()
        self.verbose = verbose

    def convert_rseq(self, rseq_file: RseqFile) -> ConversionResult:
        """Interpret a parsed RSEQ file into MIDI bytes (nothing is written)."""
        session = InterpretationSession(
            rseq_file.data, rseq_file.data_base, rseq_file.entry_offset,
            labels=rseq_file.labels, options=self.options, verbose=self.verbose)
        session.run()
        buffers = session.finished_buffers()
        midi_data = assemble_midi(buffers, self.options.ticks_per_quarter)
        return ConversionResult(rseq_file.path, midi_data, len(buffers), session.log)

    def convert_bytes(self, data: bytes, name: str = '<memory>') -> ConversionResult:
        return self.convert_rseq(parse_rseq(data, name))

    def convert_file(self, input_path: str) -> ConversionResult:
        """Convert one file and write its .mid (and .txt listing if enabled).

        Raises:
            StructuralError: Not a usable RSEQ file
            OutputWriteError: Output could not be written
        """
        rseq_file = load_rseq(input_path)
        result = self.convert_rseq(rseq_file)

        output_path = self.options.output_path_for(input_path)
        write_midi(output_path, result.midi_data)
        result.output_path = output_path

        if self.options.write_disassembly:
            listing_path = output_path.with_suffix('.txt')
            try:
                listing_path.write_text(disassemble_to_text(rseq_file, result.log))
            except OSError as e:
                raise OutputWriteError(f"Cannot write listing {listing_path}: {e}") from e
            result.listing_path = listing_path

        return result

    def convert_all(self, input_paths: List[str]) -> List[ConversionResult]:
        """Convert every input, continuing past files that fail."""
        results = []
        for input_path in input_paths:
            print(f"{input_path}:")
            try:
                result = self.convert_file(input_path)
            except OSError as e:
                print(f"  ERROR: Couldn't open file: {e}")
                continue
            except RseqError as e:
                print(f"  ERROR: {e}")
                continue
            except Exception as e:
                print(f"  ERROR: {e} {traceback.format_exc()}")
                continue

            generated = result.output_path.name
            if result.listing_path:
                generated += f" and {result.listing_path.name}"
            print(f"  OK: Generated {generated} ({result.track_count} tracks)")
            results.append(result)
        return results
