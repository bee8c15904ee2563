"""
Offset -> text annotations from the LABL chunk.
"""

from typing import Dict, Iterator, Optional, Tuple


class LabelTable:
    """Read-only mapping of bytecode offsets (relative to the DATA base) to label text."""

    def __init__(self, labels: Optional[Dict[int, bytes]] = None):
        self._labels: Dict[int, bytes] = dict(labels or {})

    def get(self, offset: int) -> Optional[bytes]:
        return self._labels.get(offset)

    def __contains__(self, offset: int) -> bool:
        return offset in self._labels

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self) -> Iterator[Tuple[int, bytes]]:
        return iter(sorted(self._labels.items()))

    def describe(self, offset: int) -> str:
        """Label as printable text for logs."""
        text = self._labels.get(offset, b'')
        return text.decode('ascii', errors='replace')
