"""Tests for the offset reader and the delta time codec."""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from offset_reader import OffsetReader
from event_emitter import EventEmitter
from seq_base import ReadFault


def test_read_be_and_le():
    reader = OffsetReader(bytes([0x12, 0x34, 0x56, 0x78]))
    assert reader.read_be(2) == 0x1234
    assert reader.read_le(2) == 0x7856
    assert reader.tell() == 4


def test_read_at_arbitrary_offset():
    reader = OffsetReader(bytes([0x00, 0x00, 0xAB, 0xCD, 0xEF]), position=2)
    assert reader.read_be(3) == 0xABCDEF
    reader.seek(0)
    assert reader.read_byte() == 0


def test_read_varint():
    reader = OffsetReader(bytes([0x00, 0x7F, 0x81, 0x00, 0xFF, 0x7F]))
    assert reader.read_varint() == 0
    assert reader.read_varint() == 127
    assert reader.read_varint() == 128
    assert reader.read_varint() == 16383
    assert reader.tell() == 6


def test_read_varint_has_no_length_limit():
    # Five continuation groups: more than MIDI's four-byte maximum
    reader = OffsetReader(bytes([0x81, 0x80, 0x80, 0x80, 0x80, 0x00]))
    assert reader.read_varint() == 1 << 35


def test_unterminated_varint_is_read_fault():
    reader = OffsetReader(bytes([0x80, 0x80, 0x80]))
    with pytest.raises(ReadFault):
        reader.read_varint()


def test_read_past_end_is_read_fault():
    reader = OffsetReader(bytes([0x01, 0x02]))
    reader.read_byte()
    with pytest.raises(ReadFault):
        reader.read_be(2)


@pytest.mark.parametrize("ticks", [0, 1, 127, 128, 16383, 16384, 2097151])
def test_delta_encoding_decodes_to_same_value(ticks):
    emitter = EventEmitter(0)
    emitter.add_wait(ticks)
    emitter.flush_delta()
    reader = OffsetReader(bytes(emitter.data))
    assert reader.read_varint() == ticks
    assert reader.tell() == len(emitter.data)
