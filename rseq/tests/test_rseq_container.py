"""Tests for the RSEQ container parser."""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import struct

import pytest

from rseq_builder import build_rseq, BASE
from rseq_container import parse_rseq, load_rseq
from seq_base import StructuralError


def test_parse_minimal_file():
    data = build_rseq([0xFF])
    rseq = parse_rseq(data, 'song.rseq')
    assert rseq.path == 'song.rseq'
    assert rseq.data_base == BASE
    assert rseq.entry_offset == BASE
    assert rseq.file_size == len(data)
    assert rseq.chunk_count == 1
    assert [c.tag for c in rseq.chunks] == ['DATA']
    assert len(rseq.labels) == 0


def test_parse_labels():
    rseq = parse_rseq(build_rseq([0xFF, 0xFF], labels={0: b'start', 1: b'loop_a'}))
    assert [c.tag for c in rseq.chunks] == ['DATA', 'LABL']
    assert rseq.labels.get(0) == b'start'
    assert rseq.labels.get(1) == b'loop_a'
    assert rseq.labels.get(2) is None
    assert list(rseq.labels) == [(0, b'start'), (1, b'loop_a')]


def test_unknown_chunks_are_skipped():
    data = bytearray(build_rseq([0xFF]))
    extra = b'INFO' + struct.pack('>I', 12) + b'\x00' * 4
    data += extra
    struct.pack_into('>IHH', data, 8, len(data), 0x10, 2)
    rseq = parse_rseq(bytes(data))
    assert [c.tag for c in rseq.chunks] == ['DATA', 'INFO']
    assert rseq.data_base == BASE


def test_bad_magic():
    with pytest.raises(StructuralError):
        parse_rseq(build_rseq([0xFF], magic=0x0100FEFF))


def test_bad_tag():
    data = b'RSAR' + build_rseq([0xFF])[4:]
    with pytest.raises(StructuralError):
        parse_rseq(data)


def test_missing_data_chunk():
    with pytest.raises(StructuralError):
        parse_rseq(build_rseq([], labels={0: b'x'}, include_data=False))


def test_truncated_chunk_table():
    data = bytearray(build_rseq([0xFF]))
    struct.pack_into('>H', data, 0x0E, 3)  # claims three chunks
    with pytest.raises(StructuralError):
        parse_rseq(bytes(data))


def test_too_short():
    with pytest.raises(StructuralError):
        parse_rseq(b'RSEQ')


def test_load_from_disk(tmp_path):
    path = tmp_path / 'a.rseq'
    path.write_bytes(build_rseq([0xFF]))
    assert load_rseq(str(path)).data_base == BASE
