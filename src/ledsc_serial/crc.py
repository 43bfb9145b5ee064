"""CRC-16/XMODEM checksum used by the LEDSC serial protocol.

Polynomial 0x1021, initial value 0x0000, no reflection, no final XOR.
The checksum of a frame covers every character from ``[`` through ``]``.
"""

CRC16_POLY = 0x1021
CRC16_INIT = 0x0000


def _build_table(poly: int) -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i << 8
        for _ in range(8):
            crc = ((crc << 1) ^ poly) & 0xFFFF if (crc & 0x8000) else ((crc << 1) & 0xFFFF)
        table.append(crc)
    return tuple(table)


_CRC16_TABLE = _build_table(CRC16_POLY)


class Crc16Xmodem:
    """Incremental CRC-16/XMODEM state.

    Example:
        crc = Crc16Xmodem()
        crc.update(b"[CPV")
        crc.update(b"]")
        crc.finalize()  # 0x7D02
    """

    def __init__(self, data: bytes = b""):
        self._crc = CRC16_INIT
        if data:
            self.update(data)

    def update(self, data: bytes) -> "Crc16Xmodem":
        """Feed more bytes into the running checksum."""
        crc = self._crc
        for b in data:
            crc = ((crc << 8) & 0xFFFF) ^ _CRC16_TABLE[((crc >> 8) ^ b) & 0xFF]
        self._crc = crc
        return self

    def finalize(self) -> int:
        """Return the checksum of everything fed so far.

        The state is left untouched, so more data can still be added.
        """
        return self._crc

    def reset(self) -> None:
        self._crc = CRC16_INIT


def crc16_xmodem(data: bytes) -> int:
    """Calculate the CRC-16/XMODEM checksum of ``data``."""
    return Crc16Xmodem(data).finalize()
