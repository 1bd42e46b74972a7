"""Checksum hooks for sensor frames, which are encoded one per buffer."""


def append_checksum(buf: bytearray) -> None:
    buf.append(sum(buf) & 0xFF)


def check_checksum(data: memoryview) -> memoryview | None:
    if len(data) == 0 or data[-1] != sum(data[:-1]) & 0xFF:
        return None
    return data[:-1]
