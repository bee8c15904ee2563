"""
Random-access reader over the sequence bytes.

All reads start at the current position and advance it. Reading past the
end of the data raises ReadFault.
"""

from seq_base import ReadFault


class OffsetReader:
    """Cursor over an immutable byte buffer, addressed by absolute offset."""

    def __init__(self, data: bytes, position: int = 0):
        self.data = data
        self.position = position

    def seek(self, position: int):
        self.position = position

    def tell(self) -> int:
        return self.position

    def _take(self, width: int) -> bytes:
        end = self.position + width
        if self.position < 0 or end > len(self.data):
            raise ReadFault(f"Read of {width} byte(s) at 0x{self.position:X} "
                            f"past end of data (0x{len(self.data):X})")
        chunk = self.data[self.position:end]
        self.position = end
        return chunk

    def read_byte(self) -> int:
        return self._take(1)[0]

    def read_bytes(self, length: int) -> bytes:
        return self._take(length)

    def read_be(self, width: int) -> int:
        """Read an unsigned big-endian integer of `width` bytes."""
        return int.from_bytes(self._take(width), 'big')

    def read_le(self, width: int) -> int:
        """Read an unsigned little-endian integer of `width` bytes."""
        return int.from_bytes(self._take(width), 'little')

    def read_varint(self) -> int:
        """Read a base-128 variable-length integer, most significant group first.

        There is no length limit; an unterminated value runs into the end
        of the data and raises ReadFault.
        """
        value = 0
        while True:
            c = self.read_byte()
            value = (value << 7) | (c & 0x7F)
            if not c & 0x80:
                return value
