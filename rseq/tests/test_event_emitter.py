"""Tests for MIDI event encoding."""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from event_emitter import EventEmitter


def test_event_carries_channel_and_pending_delta():
    emitter = EventEmitter(5)
    emitter.add_wait(200)
    emitter.emit_controller(0x07, 100)
    assert bytes(emitter.data) == bytes([0x81, 0x48, 0xB5, 0x07, 100])
    assert emitter.wait_accumulated == 0


def test_note_off_is_zero_velocity_note_on():
    emitter = EventEmitter(2)
    emitter.emit_note_on(60, 100)
    emitter.emit_note_off(60)
    assert bytes(emitter.data) == bytes([0x00, 0x92, 60, 100, 0x00, 0x92, 60, 0])


def test_tempo_120_is_500000_usec():
    emitter = EventEmitter(0)
    emitter.emit_tempo(120)
    # 500000 = 0x07A120
    assert bytes(emitter.data) == bytes([0x00, 0xFF, 0x51, 0x03, 0x07, 0xA1, 0x20])


def test_tempo_zero_rejected():
    with pytest.raises(ValueError):
        EventEmitter(0).emit_tempo(0)


@pytest.mark.parametrize("raw,lsb,msb", [
    (0x00, 0x00, 0x40),  # centre
    (0x80, 0x00, 0x00),  # -128 -> bottom of range
    (0x7F, 0x40, 0x7F),  # +127 -> 16320
    (0xC0, 0x00, 0x20),  # -64 -> 4096
])
def test_pitch_bend_scaling(raw, lsb, msb):
    emitter = EventEmitter(0)
    emitter.emit_pitch_bend(raw)
    assert bytes(emitter.data) == bytes([0x00, 0xE0, lsb, msb])


def test_bend_range_sends_full_rpn_every_time():
    emitter = EventEmitter(0)
    emitter.emit_bend_range(12)
    emitter.emit_bend_range(2)
    triple = lambda v: bytes([0, 0xB0, 0x65, 0, 0, 0xB0, 0x64, 0, 0, 0xB0, 0x06, v])
    assert bytes(emitter.data) == triple(12) + triple(2)
    assert emitter.rpn_armed is False


def test_nrpn_select_order():
    emitter = EventEmitter(0)
    emitter.rpn_armed = True
    emitter.emit_nrpn(0x02, 0x00, 5)
    assert bytes(emitter.data) == bytes([0, 0xB0, 0x63, 0x02, 0, 0xB0, 0x62, 0x00, 0, 0xB0, 0x06, 5])
    assert emitter.rpn_armed is False


def test_rpn_clears_armed_flag():
    emitter = EventEmitter(0)
    emitter.rpn_armed = True
    emitter.emit_rpn(0, 1, 64)
    assert bytes(emitter.data) == bytes([0, 0xB0, 0x65, 0, 0, 0xB0, 0x64, 1, 0, 0xB0, 0x06, 64])
    assert emitter.rpn_armed is False


def test_meta_length_is_variable_length():
    emitter = EventEmitter(3)
    text = b'x' * 200
    emitter.emit_meta(0x06, text)
    # Meta status is never OR'ed with the channel
    assert bytes(emitter.data[:5]) == bytes([0x00, 0xFF, 0x06, 0x81, 0x48])
    assert bytes(emitter.data[5:]) == text


def test_end_of_track():
    emitter = EventEmitter(0)
    emitter.add_wait(7)
    emitter.emit_end_of_track()
    assert bytes(emitter.data) == bytes([0x07, 0xFF, 0x2F, 0x00])
