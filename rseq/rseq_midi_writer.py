"""
Output generation for converted sequences.

Builds the Standard MIDI File from finished track buffers and writes the
text listing of the decoded commands.
"""

import struct
from pathlib import Path
from typing import List

from seq_base import DEFAULT_TICKS_PER_QUARTER, OutputWriteError


def assemble_midi(track_buffers: List[bytes],
                  ticks_per_quarter: int = DEFAULT_TICKS_PER_QUARTER) -> bytes:
    """Concatenate MTrk bodies into a format 1 MIDI file.

    Empty buffers are skipped; the header's track count covers only the
    tracks actually written.
    """
    tracks = [buf for buf in track_buffers if buf]
    out = bytearray()
    out += b'MThd'
    out += struct.pack('>IHHH', 6, 1, len(tracks), ticks_per_quarter)
    for buf in tracks:
        out += b'MTrk'
        out += struct.pack('>I', len(buf))
        out += buf
    return bytes(out)


def write_midi(output_path: Path, midi_data: bytes):
    """Write the MIDI file, creating its directory if needed."""
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'wb') as f:
            f.write(midi_data)
    except OSError as e:
        raise OutputWriteError(f"Cannot open output MIDI file {output_path}: {e}") from e


def disassemble_to_text(rseq_file, log_lines: List[str]) -> str:
    """Generate a text listing of the conversion.

    Args:
        rseq_file: Parsed RseqFile (for the container summary)
        log_lines: Diagnostic lines collected by the interpretation session

    Returns:
        Formatted listing text
    """
    output = [f"{rseq_file.path}:"]
    output.append(f"  File size {rseq_file.file_size:08X}  Header {rseq_file.header_size:04X}  "
                  f"Chunks {rseq_file.chunk_count}")
    for chunk in rseq_file.chunks:
        output.append(f"    {chunk.tag}  at {chunk.offset:08X}  size {chunk.size:08X}")
    output.append(f"  Sequence data at {rseq_file.data_base:08X}")

    if len(rseq_file.labels):
        output.append(f"  Labels ({len(rseq_file.labels)}):")
        for offset, _ in rseq_file.labels:
            output.append(f"    {offset:06X}  {rseq_file.labels.describe(offset)}")

    output.append("")
    output.extend(log_lines)
    output.append("")
    return '\n'.join(output)
