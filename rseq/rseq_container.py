"""
RSEQ container parser.

Layout (big-endian except where noted):
    0x00  'RSEQ'
    0x04  magic 0xFEFF0100
    0x08  file size
    0x0C  header size (16-bit)
    0x0E  chunk count (16-bit)
Chunks start at the header size. Each chunk has a 4-byte tag and a 4-byte
size that includes the 8-byte chunk header.
    DATA  +0x08  offset of the bytecode, relative to the chunk start
    LABL  +0x08  label count N, then N record offsets relative to chunk+8.
                 Record: bytecode offset, text length, text.
"""

from dataclasses import dataclass, field
from typing import List

from offset_reader import OffsetReader
from label_table import LabelTable
from seq_base import ReadFault, StructuralError

RSEQ_TAG = b'RSEQ'
RSEQ_MAGIC = 0xFEFF0100
HEADER_SIZE = 0x10


@dataclass
class ChunkInfo:
    tag: str
    offset: int
    size: int


@dataclass
class RseqFile:
    """A validated RSEQ container."""
    path: str
    data: bytes
    file_size: int
    header_size: int
    chunk_count: int
    data_base: int  # Absolute offset of the bytecode region
    entry_offset: int  # Absolute start of track 0
    labels: LabelTable = field(default_factory=LabelTable)
    chunks: List[ChunkInfo] = field(default_factory=list)


def parse_rseq(data: bytes, path: str = '<memory>') -> RseqFile:
    """Parse the RSEQ header and chunk table.

    Raises:
        StructuralError: Bad tag/magic, truncated chunk table, or no DATA chunk
    """
    if len(data) < HEADER_SIZE:
        raise StructuralError(f"File too short for RSEQ header ({len(data)} bytes)")

    reader = OffsetReader(data)
    tag = reader.read_bytes(4)
    magic = reader.read_be(4)
    if tag != RSEQ_TAG or magic != RSEQ_MAGIC:
        raise StructuralError(f"Invalid RSEQ file (bad RSEQ chunk: id={tag!r} magic=0x{magic:08X})")

    file_size = reader.read_be(4)
    header_size = reader.read_be(2)
    chunk_count = reader.read_be(2)

    chunks = []
    data_base = None
    labels = LabelTable()
    pos = header_size

    try:
        for _ in range(chunk_count):
            reader.seek(pos)
            chunk_tag = reader.read_bytes(4)
            chunk_size = reader.read_be(4)
            chunks.append(ChunkInfo(chunk_tag.decode('ascii', errors='replace'), pos, chunk_size))

            if chunk_tag == b'DATA':
                data_base = pos + reader.read_be(4)
            elif chunk_tag == b'LABL':
                labels = _read_labels(reader, pos)

            if chunk_size < 8:
                raise StructuralError(f"Chunk {chunk_tag!r} at 0x{pos:X} has invalid size {chunk_size}")
            pos += chunk_size
    except ReadFault as e:
        raise StructuralError(f"Truncated chunk table: {e}") from e

    if data_base is None:
        raise StructuralError("Not enough data to decode with (no DATA chunk)")
    if data_base >= len(data):
        raise StructuralError(f"DATA offset 0x{data_base:X} is past end of file")

    return RseqFile(
        path=path,
        data=data,
        file_size=file_size,
        header_size=header_size,
        chunk_count=chunk_count,
        data_base=data_base,
        entry_offset=data_base,
        labels=labels,
        chunks=chunks,
    )


def _read_labels(reader: OffsetReader, chunk_start: int) -> LabelTable:
    count = reader.read_be(4)
    label_base = chunk_start + 8
    record_offsets = [reader.read_be(4) + label_base for _ in range(count)]

    labels = {}
    for record in record_offsets:
        reader.seek(record)
        seq_offset = reader.read_be(4)
        length = reader.read_be(4)
        labels[seq_offset] = reader.read_bytes(length)
    return LabelTable(labels)


def load_rseq(path: str) -> RseqFile:
    """Read and parse an RSEQ file from disk."""
    with open(path, 'rb') as f:
        data = f.read()
    return parse_rseq(data, str(path))
