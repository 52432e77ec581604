#
# Datasize Units of Information
#

# Standard library -----------------------------------------------------------------------------------------------------
from enum import Enum, StrEnum, unique
from typing import Self

# Local ----------------------------------------------------------------------------------------------------------------
from .numeric import RoundingMode, divide_exact, multiply_exact, std_int64
from .utils import fmt_type


# @formatter:off

class UnitsConf:
    """
    Configuration constants for units of information.

    Attributes:
        BITS_PER_BYTE: The sole bridge constant between bit and byte systems.
        DECIMAL_BASE: Step base of the SI (power-of-10) systems.
        BINARY_BASE: Step base of the IEC (power-of-2) system.
        SYMBOLS_CASE_SENSITIVE: Short symbols which are ambiguous between bits
            and bytes, matched exactly ("kb" is kilobits, "kB" is kilobytes).
        NAMES: Unambiguous symbols and names, matched case-insensitively.
            Keys are lowercase.
    """

    BITS_PER_BYTE = 8

    DECIMAL_BASE = 1000
    BINARY_BASE = 1024

    SYMBOLS_CASE_SENSITIVE = {
        "b": "BITS",  "kb": "KILOBITS",  "Mb": "MEGABITS",  "Gb": "GIGABITS",  "Tb": "TERABITS",
        "B": "BYTES", "kB": "KILOBYTES", "MB": "MEGABYTES", "GB": "GIGABYTES", "TB": "TERABYTES",
    }

    NAMES = {
        # Bit units
        "bit": "BITS",          "bits": "BITS",
        "kilobit": "KILOBITS",  "kilobits": "KILOBITS",  "kbits": "KILOBITS",
        "megabit": "MEGABITS",  "megabits": "MEGABITS",  "mbits": "MEGABITS",
        "gigabit": "GIGABITS",  "gigabits": "GIGABITS",  "gbits": "GIGABITS",
        "terabit": "TERABITS",  "terabits": "TERABITS",  "tbits": "TERABITS",
        # Decimal byte units
        "byte": "BYTES",            "bytes": "BYTES",
        "kilobyte": "KILOBYTES",    "kilobytes": "KILOBYTES",
        "megabyte": "MEGABYTES",    "megabytes": "MEGABYTES",
        "gigabyte": "GIGABYTES",    "gigabytes": "GIGABYTES",
        "terabyte": "TERABYTES",    "terabytes": "TERABYTES",
        "pb": "PETABYTES",          "petabyte": "PETABYTES",    "petabytes": "PETABYTES",
        "eb": "EXABYTES",           "exabyte": "EXABYTES",      "exabytes": "EXABYTES",
        "zb": "ZETTABYTES",         "zettabyte": "ZETTABYTES",  "zettabytes": "ZETTABYTES",
        "yb": "YOTTABYTES",         "yottabyte": "YOTTABYTES",  "yottabytes": "YOTTABYTES",
        # Binary byte units
        "kib": "KIBIBYTES", "kibibyte": "KIBIBYTES", "kibibytes": "KIBIBYTES",
        "mib": "MEBIBYTES", "mebibyte": "MEBIBYTES", "mebibytes": "MEBIBYTES",
        "gib": "GIBIBYTES", "gibibyte": "GIBIBYTES", "gibibytes": "GIBIBYTES",
        "tib": "TEBIBYTES", "tebibyte": "TEBIBYTES", "tebibytes": "TEBIBYTES",
        "pib": "PEBIBYTES", "pebibyte": "PEBIBYTES", "pebibytes": "PEBIBYTES",
        "eib": "EXBIBYTES", "exbibyte": "EXBIBYTES", "exbibytes": "EXBIBYTES",
        "zib": "ZEBIBYTES", "zebibyte": "ZEBIBYTES", "zebibytes": "ZEBIBYTES",
        "yib": "YOBIBYTES", "yobibyte": "YOBIBYTES", "yobibytes": "YOBIBYTES",
    }

# @formatter:on


# Classes --------------------------------------------------------------------------------------------------------------

@unique
class MagnitudeSystem(StrEnum):
    """
    Families of units sharing a common step base and a finest unit.

    Attributes:
        BIT_DECIMAL  : b, kb, Mb, Gb, Tb - power-of-10 multiples of a bit
        BYTE_DECIMAL : B, kB, MB ... YB - power-of-10 (SI) multiples of a byte
        BYTE_BINARY  : B, KiB, MiB ... YiB - power-of-2 (IEC) multiples of a byte
    """
    BIT_DECIMAL = "bit_decimal"
    BYTE_DECIMAL = "byte_decimal"
    BYTE_BINARY = "byte_binary"

    @property
    def base(self) -> int:
        """Step base between two adjacent units: 1000 or 1024."""
        match self:
            case MagnitudeSystem.BIT_DECIMAL | MagnitudeSystem.BYTE_DECIMAL:
                return UnitsConf.DECIMAL_BASE
            case MagnitudeSystem.BYTE_BINARY:
                return UnitsConf.BINARY_BASE
            case _:
                raise NotImplementedError(f"unknown magnitude system: {self}")

    @property
    def bits_per_unit(self) -> int:
        """Number of bits in the finest unit of this system: 1 for bit systems, 8 for byte systems."""
        match self:
            case MagnitudeSystem.BIT_DECIMAL:
                return 1
            case MagnitudeSystem.BYTE_DECIMAL | MagnitudeSystem.BYTE_BINARY:
                return UnitsConf.BITS_PER_BYTE
            case _:
                raise NotImplementedError(f"unknown magnitude system: {self}")

    @property
    def code(self) -> int:
        """Stable small integer identifying the system in persisted data."""
        return list(MagnitudeSystem).index(self)

    @property
    def finest(self) -> "Unit":
        return self.units[0]

    @property
    def is_bit(self) -> bool:
        return self.bits_per_unit == 1

    @property
    def largest(self) -> "Unit":
        return self.units[-1]

    @property
    def units(self) -> tuple["Unit", ...]:
        """Units of this system ordered from finest to coarsest."""
        return _SYSTEM_UNITS[self]

    @classmethod
    def from_code(cls, code: int) -> Self:
        systems = list(cls)
        if isinstance(code, bool) or not isinstance(code, int) or not 0 <= code < len(systems):
            raise ValueError(f"unknown magnitude system code: {code!r}")
        return systems[code]


# @formatter:off
@unique
class Unit(Enum):
    """
    A unit of digital information: a magnitude system tag plus an ordinal.

    The ordinal is the position within the system (0 is the finest unit), the
    factor is base**ordinal in units of the system's finest unit. Decimal and
    binary byte systems have distinct finest members BYTES and BINARY_BYTES,
    both one byte large.

    The conversion methods are directional, meaning they accept negative sizes.
    Conversions from finer to coarser granularity round to the nearest neighbor
    with ties away from zero (HALF_UP):

        >>> Unit.KILOBITS.from_unit(499, Unit.BITS)
        0
        >>> Unit.KILOBITS.from_unit(500, Unit.BITS)
        1

    Conversions from coarser to finer granularity which overflow a signed 64-bit
    integer raise OverflowError.
    """

    BITS       = (MagnitudeSystem.BIT_DECIMAL, 0, "b", "bits")
    KILOBITS   = (MagnitudeSystem.BIT_DECIMAL, 1, "kb", "kilobits")
    MEGABITS   = (MagnitudeSystem.BIT_DECIMAL, 2, "Mb", "megabits")
    GIGABITS   = (MagnitudeSystem.BIT_DECIMAL, 3, "Gb", "gigabits")
    TERABITS   = (MagnitudeSystem.BIT_DECIMAL, 4, "Tb", "terabits")

    BYTES      = (MagnitudeSystem.BYTE_DECIMAL, 0, "B", "bytes")
    KILOBYTES  = (MagnitudeSystem.BYTE_DECIMAL, 1, "kB", "kilobytes")
    MEGABYTES  = (MagnitudeSystem.BYTE_DECIMAL, 2, "MB", "megabytes")
    GIGABYTES  = (MagnitudeSystem.BYTE_DECIMAL, 3, "GB", "gigabytes")
    TERABYTES  = (MagnitudeSystem.BYTE_DECIMAL, 4, "TB", "terabytes")
    PETABYTES  = (MagnitudeSystem.BYTE_DECIMAL, 5, "PB", "petabytes")
    EXABYTES   = (MagnitudeSystem.BYTE_DECIMAL, 6, "EB", "exabytes")
    ZETTABYTES = (MagnitudeSystem.BYTE_DECIMAL, 7, "ZB", "zettabytes")
    YOTTABYTES = (MagnitudeSystem.BYTE_DECIMAL, 8, "YB", "yottabytes")

    BINARY_BYTES = (MagnitudeSystem.BYTE_BINARY, 0, "B", "bytes")
    KIBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 1, "KiB", "kibibytes")
    MEBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 2, "MiB", "mebibytes")
    GIBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 3, "GiB", "gibibytes")
    TEBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 4, "TiB", "tebibytes")
    PEBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 5, "PiB", "pebibytes")
    EXBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 6, "EiB", "exbibytes")
    ZEBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 7, "ZiB", "zebibytes")
    YOBIBYTES  = (MagnitudeSystem.BYTE_BINARY, 8, "YiB", "yobibytes")
# @formatter:on

    def __init__(self, system: MagnitudeSystem, ordinal: int, symbol: str, long_name: str):
        self.system = system
        self.ordinal = ordinal
        self.symbol = symbol
        self.long_name = long_name

    def __str__(self) -> str:
        return self.symbol

    def __repr__(self) -> str:
        return f"Unit.{self.name}"

    @property
    def coarser(self) -> Self | None:
        """The next coarser unit of the same system, None for the largest unit."""
        units = self.system.units
        return units[self.ordinal + 1] if self.ordinal + 1 < len(units) else None

    @property
    def factor(self) -> int:
        """Exact size of this unit in units of its system's finest unit."""
        return self.system.base ** self.ordinal

    @property
    def finer(self) -> Self | None:
        """The next finer unit of the same system, None for the finest unit."""
        return self.system.units[self.ordinal - 1] if self.ordinal > 0 else None

    @property
    def is_bit(self) -> bool:
        return self.system.is_bit

    @property
    def is_finest(self) -> bool:
        return self.ordinal == 0

    @property
    def is_largest(self) -> bool:
        return self is self.system.largest

    @property
    def tag(self) -> tuple[str, int]:
        """Persisted identity of this unit: (system value, ordinal)."""
        return self.system.value, self.ordinal

    @classmethod
    def from_tag(cls, system: MagnitudeSystem | str, ordinal: int) -> Self:
        """
        Returns the unit identified by a (system, ordinal) tag.

        Raises:
            ValueError: If the system or ordinal is unknown.
        """
        system_ = MagnitudeSystem(system)
        units = system_.units
        if isinstance(ordinal, bool) or not isinstance(ordinal, int) or not 0 <= ordinal < len(units):
            raise ValueError(f"unknown ordinal {ordinal!r} for magnitude system {system_.value}")
        return units[ordinal]

    @classmethod
    def lookup(cls, token: str) -> Self | None:
        """
        Returns the unit denoted by a symbol or a name, None if there is no match.

        Short symbols which differ only by case between bits and bytes (b/B,
        kb/kB, Mb/MB, Gb/GB, Tb/TB) are matched case-sensitively, all other
        symbols and names case-insensitively. "B" and "bytes" denote the
        decimal BYTES unit.

        Examples:
            >>> Unit.lookup("kb")
            Unit.KILOBITS
            >>> Unit.lookup("kB")
            Unit.KILOBYTES
            >>> Unit.lookup("MEBIBYTES")
            Unit.MEBIBYTES
        """
        if not isinstance(token, str):
            raise TypeError(f"token must be str, but got {fmt_type(token)}")

        name = UnitsConf.SYMBOLS_CASE_SENSITIVE.get(token) or UnitsConf.NAMES.get(token.lower())
        return cls[name] if name else None

    def from_unit(self, size: int, unit: "Unit") -> int:
        """Converts the given size from the specified unit to this unit."""
        return convert(size, unit, self)

    def to_unit(self, size: int, unit: "Unit") -> int:
        """Converts the given size from this unit to the specified unit."""
        return convert(size, self, unit)

    def to_bits(self, size: int) -> int:
        """Shorthand for ``self.to_unit(size, Unit.BITS)``."""
        return convert(size, self, Unit.BITS)

    def to_kilobits(self, size: int) -> int:
        return convert(size, self, Unit.KILOBITS)

    def to_megabits(self, size: int) -> int:
        return convert(size, self, Unit.MEGABITS)

    def to_gigabits(self, size: int) -> int:
        return convert(size, self, Unit.GIGABITS)

    def to_terabits(self, size: int) -> int:
        return convert(size, self, Unit.TERABITS)

    def to_bytes(self, size: int) -> int:
        """Shorthand for ``self.to_unit(size, Unit.BYTES)``."""
        return convert(size, self, Unit.BYTES)

    def to_kilobytes(self, size: int) -> int:
        return convert(size, self, Unit.KILOBYTES)

    def to_megabytes(self, size: int) -> int:
        return convert(size, self, Unit.MEGABYTES)

    def to_gigabytes(self, size: int) -> int:
        return convert(size, self, Unit.GIGABYTES)

    def to_terabytes(self, size: int) -> int:
        return convert(size, self, Unit.TERABYTES)

    def to_petabytes(self, size: int) -> int:
        return convert(size, self, Unit.PETABYTES)

    def to_exabytes(self, size: int) -> int:
        return convert(size, self, Unit.EXABYTES)

    def to_zettabytes(self, size: int) -> int:
        return convert(size, self, Unit.ZETTABYTES)

    def to_yottabytes(self, size: int) -> int:
        return convert(size, self, Unit.YOTTABYTES)

    def to_binary_bytes(self, size: int) -> int:
        """Same value as to_bytes(), named for the byte-binary system."""
        return convert(size, self, Unit.BINARY_BYTES)

    def to_kibibytes(self, size: int) -> int:
        return convert(size, self, Unit.KIBIBYTES)

    def to_mebibytes(self, size: int) -> int:
        return convert(size, self, Unit.MEBIBYTES)

    def to_gibibytes(self, size: int) -> int:
        return convert(size, self, Unit.GIBIBYTES)

    def to_tebibytes(self, size: int) -> int:
        return convert(size, self, Unit.TEBIBYTES)

    def to_pebibytes(self, size: int) -> int:
        return convert(size, self, Unit.PEBIBYTES)

    def to_exbibytes(self, size: int) -> int:
        return convert(size, self, Unit.EXBIBYTES)

    def to_zebibytes(self, size: int) -> int:
        return convert(size, self, Unit.ZEBIBYTES)

    def to_yobibytes(self, size: int) -> int:
        return convert(size, self, Unit.YOBIBYTES)


_SYSTEM_UNITS: dict[MagnitudeSystem, tuple[Unit, ...]] = {
    system: tuple(sorted((u for u in Unit if u.system is system), key=lambda u: u.ordinal))
    for system in MagnitudeSystem
}


# Methods --------------------------------------------------------------------------------------------------------------

def convert(size: int, from_unit: Unit, to_unit: Unit) -> int:
    """
    Converts a size from one unit to another, within or across magnitude systems.

    Rounding is HALF_UP whenever the target unit is coarser than the exact result.
    Bytes to bits divides by the target factor first and then multiplies by 8;
    bits to bytes divides once by the target factor times 8.

    Args:
        size: Signed 64-bit count in from_unit.
        from_unit: The unit the size is measured in.
        to_unit: The unit to convert to.

    Returns:
        The converted signed 64-bit count.

    Raises:
        TypeError: If a unit is None or not a Unit, or size is not an integer.
        OverflowError: If the result or an intermediate value overflows 64 bits.

    Examples:
        >>> convert(2, Unit.KIBIBYTES, Unit.BYTES)
        2048
        >>> convert(1, Unit.BYTES, Unit.BITS)
        8
        >>> convert(12, Unit.BITS, Unit.BYTES)
        2
    """
    if not isinstance(from_unit, Unit):
        raise TypeError(f"from_unit must be Unit, but got {fmt_type(from_unit)}")
    if not isinstance(to_unit, Unit):
        raise TypeError(f"to_unit must be Unit, but got {fmt_type(to_unit)}")

    size = std_int64(size, name="size")

    if from_unit is to_unit:
        return size

    scaled = multiply_exact(size, from_unit.factor)
    src_bits = from_unit.system.bits_per_unit
    dst_bits = to_unit.system.bits_per_unit

    if src_bits == dst_bits:
        return divide_exact(scaled, to_unit.factor, RoundingMode.HALF_UP)

    elif src_bits > dst_bits:
        # bytes -> bits
        ratio = src_bits // dst_bits
        return multiply_exact(divide_exact(scaled, to_unit.factor, RoundingMode.HALF_UP), ratio)

    else:
        # bits -> bytes
        ratio = dst_bits // src_bits
        return divide_exact(scaled, to_unit.factor * ratio, RoundingMode.HALF_UP)


# Module Sanity Checks -------------------------------------------------------------------------------------------------

for _system, _units in _SYSTEM_UNITS.items():
    if [u.ordinal for u in _units] != list(range(len(_units))):
        raise AssertionError(f"Configuration Error: ordinals of {_system.value} units must be contiguous from 0.")

for _name in (*UnitsConf.SYMBOLS_CASE_SENSITIVE.values(), *UnitsConf.NAMES.values()):
    if _name not in Unit.__members__:
        raise AssertionError(f"Configuration Error: unit lookup table refers to unknown unit '{_name}'.")

for _key in UnitsConf.NAMES:
    if _key != _key.lower():
        raise AssertionError(f"Configuration Error: case-insensitive unit name '{_key}' must be lowercase.")
