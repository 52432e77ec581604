#
# Datasize Persisted Representation
#

# Only the raw (size, unit) pair is persisted. The byte size and the display
# string are derived and always recomputed on load.

# Standard library -----------------------------------------------------------------------------------------------------
import struct
from typing import Any, Final

# Local ----------------------------------------------------------------------------------------------------------------
from .numeric import std_int64
from .quantity import DataSize
from .units import MagnitudeSystem, Unit
from .utils import fmt_type, fmt_value

# @formatter:off

FORMAT_VERSION: Final[int] = 1

# version, system code, ordinal, raw count
size_struct = struct.Struct(">BBBq")

# @formatter:on


# Methods --------------------------------------------------------------------------------------------------------------

def pack_size(size: DataSize) -> bytes:
    """
    Serialize a DataSize to a fixed 11-byte big-endian record.

    Examples:
        >>> pack_size(DataSize.of(1, Unit.KIBIBYTES)).hex()
        '0102010000000000000001'
    """
    if not isinstance(size, DataSize):
        raise TypeError(f"size must be DataSize, but got {fmt_type(size)}")
    return size_struct.pack(FORMAT_VERSION, size.unit.system.code, size.unit.ordinal, size.size)


def unpack_size(data: bytes | bytearray | memoryview) -> DataSize:
    """
    Deserialize a record produced by pack_size().

    Raises:
        TypeError: If data is not bytes-like.
        ValueError: If the length, version, system code or ordinal is invalid.
        OverflowError: If the restored size overflows in bytes.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"data must be bytes-like, but got {fmt_type(data)}")
    if len(data) != size_struct.size:
        raise ValueError(f"packed DataSize must be {size_struct.size} bytes long, got {len(data)}")

    version, code, ordinal, count = size_struct.unpack(data)
    _check_version(version)
    return DataSize(count, Unit.from_tag(MagnitudeSystem.from_code(code), ordinal))


def size_state(size: DataSize) -> dict[str, Any]:
    """
    Returns a JSON-friendly mapping of a DataSize.

    Examples:
        >>> size_state(DataSize.of(-3, Unit.MEGABITS))
        {'version': 1, 'system': 'bit_decimal', 'ordinal': 2, 'size': -3}
    """
    if not isinstance(size, DataSize):
        raise TypeError(f"size must be DataSize, but got {fmt_type(size)}")
    system, ordinal = size.unit.tag
    return {"version": FORMAT_VERSION, "system": system, "ordinal": ordinal, "size": size.size}


def size_from_state(state: dict[str, Any]) -> DataSize:
    """
    Restore a DataSize from a mapping produced by size_state().

    Raises:
        TypeError: If state is not a mapping or size is not an integer.
        ValueError: If a key is missing, or the version, system or ordinal is invalid.
    """
    if not isinstance(state, dict):
        raise TypeError(f"state must be dict, but got {fmt_type(state)}")

    missing = [key for key in ("version", "system", "ordinal", "size") if key not in state]
    if missing:
        raise ValueError(f"DataSize state is missing keys {missing}")

    _check_version(state["version"])
    try:
        system = MagnitudeSystem(state["system"])
    except ValueError:
        raise ValueError(f"unknown magnitude system {fmt_value(state['system'])}") from None

    return DataSize(std_int64(state["size"], name="size"), Unit.from_tag(system, state["ordinal"]))


# Private Methods ------------------------------------------------------------------------------------------------------

def _check_version(version: Any):
    if version != FORMAT_VERSION:
        raise ValueError(f"unsupported DataSize format version {fmt_value(version)}, expected {FORMAT_VERSION}")
