"""
Immutable, directional quantities of digital information.

A DataSize remembers the raw count and the unit it was created with, and
derives two values once at construction: its size in decimal bytes, used for
equality, ordering and arithmetic, and its display string, which never
changes afterwards.

Examples:
    >>> DataSize.of(1, Unit.KIBIBYTES) == DataSize.of(1024, Unit.BYTES)
    True
    >>> str(DataSize.of(1, Unit.KIBIBYTES)), str(DataSize.of(1024, Unit.BYTES))
    ('1KiB', '1.024kB')
    >>> str(DataSize.of(2, Unit.MEGABYTES) + DataSize.of(500, Unit.KILOBYTES))
    '2.5MB'
"""

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass, field
from typing import Self

# Local ----------------------------------------------------------------------------------------------------------------
from .display import DataSizeFormatter, NumberFormat, get_formatter
from .numeric import RoundingMode, abs_exact, add_exact, divide_exact, multiply_exact, negate_exact, std_int64
from .numeric import subtract_exact
from .sentinels import UNSET, UnsetType
from .units import Unit, convert
from .utils import fmt_type


# Classes --------------------------------------------------------------------------------------------------------------

@dataclass(frozen=True, eq=False, repr=False)
class DataSize:
    """
    A signed quantity of bits or bytes, such as "20 megabytes" or "-3 kibibytes".

    Two instances are equal if and only if their sizes in decimal bytes are
    equal, regardless of the units they were created with. Conversions of bit
    units to bytes round HALF_UP, so 4 bits and 1 byte compare equal.

    The string representation is computed once at construction using
    DataSizeFormatter.default() and stays stable for the life of the instance,
    even where the byte size would format differently.

    Attributes:
        size: The raw signed 64-bit count.
        unit: The unit the count is measured in.

    Raises:
        TypeError: If unit is not a Unit or size is not an integer.
        OverflowError: If the size in bytes overflows a signed 64-bit integer.
    """

    size: int
    unit: Unit
    _bytes: int = field(init=False, repr=False)
    _text: str = field(init=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.unit, Unit):
            raise TypeError(f"unit must be Unit, but got {fmt_type(self.unit)}")
        size = std_int64(self.size, name="size")
        object.__setattr__(self, "size", size)
        object.__setattr__(self, "_bytes", convert(size, self.unit, Unit.BYTES))
        object.__setattr__(self, "_text", DataSizeFormatter.default().format(size, self.unit))

    @classmethod
    def of(cls, size: int, unit: Unit) -> Self:
        """
        Returns a DataSize representing the size in the specified unit.

        Examples:
            >>> DataSize.of(1536, Unit.BINARY_BYTES)
            DataSize(size=1536, unit=Unit.BINARY_BYTES)
        """
        return cls(size, unit)

    @classmethod
    def parse(
            cls,
            text: str,
            unit: Unit | UnsetType = UNSET,
            *,
            locale: str | None = None,
            number_format: NumberFormat | None = None,
    ) -> Self:
        """
        Parse a DataSize from a string such as "1.5kB" or "-20 megabits".

        See DataSizeFormatter.parse() for the accepted syntax and the rounding
        of fractional numbers.

        Raises:
            ParseError: If the string has no number or no known unit.
            OverflowError: If the size overflows a signed 64-bit integer.

        Examples:
            >>> DataSize.parse("1.5kB") == DataSize.of(1500, Unit.BYTES)
            True
        """
        size, unit_ = get_formatter(locale, number_format).parse(text, unit)
        return cls(size, unit_)

    # Conversions ------------------------------------------------------------------------------------------------------

    def to(self, unit: Unit) -> int:
        """
        Converts this size to the specified unit, rounding HALF_UP.

        The conversion starts from the size in decimal bytes, so a size created
        in bits is reported at byte granularity.

        Raises:
            TypeError: If unit is not a Unit.
            OverflowError: If the result overflows a signed 64-bit integer.
        """
        return convert(self._bytes, Unit.BYTES, unit)

    def to_bits(self) -> int:
        return self.to(Unit.BITS)

    def to_kilobits(self) -> int:
        return self.to(Unit.KILOBITS)

    def to_megabits(self) -> int:
        return self.to(Unit.MEGABITS)

    def to_gigabits(self) -> int:
        return self.to(Unit.GIGABITS)

    def to_terabits(self) -> int:
        return self.to(Unit.TERABITS)

    def to_bytes(self) -> int:
        """Returns the size in bytes: the value this instance compares by."""
        return self._bytes

    def to_kilobytes(self) -> int:
        return self.to(Unit.KILOBYTES)

    def to_megabytes(self) -> int:
        return self.to(Unit.MEGABYTES)

    def to_gigabytes(self) -> int:
        return self.to(Unit.GIGABYTES)

    def to_terabytes(self) -> int:
        return self.to(Unit.TERABYTES)

    def to_petabytes(self) -> int:
        return self.to(Unit.PETABYTES)

    def to_exabytes(self) -> int:
        return self.to(Unit.EXABYTES)

    def to_zettabytes(self) -> int:
        return self.to(Unit.ZETTABYTES)

    def to_yottabytes(self) -> int:
        return self.to(Unit.YOTTABYTES)

    def to_kibibytes(self) -> int:
        return self.to(Unit.KIBIBYTES)

    def to_mebibytes(self) -> int:
        return self.to(Unit.MEBIBYTES)

    def to_gibibytes(self) -> int:
        return self.to(Unit.GIBIBYTES)

    def to_tebibytes(self) -> int:
        return self.to(Unit.TEBIBYTES)

    def to_pebibytes(self) -> int:
        return self.to(Unit.PEBIBYTES)

    def to_exbibytes(self) -> int:
        return self.to(Unit.EXBIBYTES)

    def to_zebibytes(self) -> int:
        return self.to(Unit.ZEBIBYTES)

    def to_yobibytes(self) -> int:
        return self.to(Unit.YOBIBYTES)

    # Arithmetic -------------------------------------------------------------------------------------------------------

    def plus(self, size: "DataSize | int", unit: Unit | UnsetType = UNSET) -> Self:
        """
        Returns a copy of this size with the specified size added.

        The operand is either a DataSize or a count together with its unit. The
        sum is computed in bytes; the result is expressed in bits if this size
        was created with a bit unit, otherwise in the finest unit of this size's
        byte system (BYTES or BINARY_BYTES).

        Raises:
            OverflowError: If the sum overflows a signed 64-bit integer.

        Examples:
            >>> DataSize.of(1, Unit.KIBIBYTES).plus(1, Unit.KIBIBYTES)
            DataSize(size=2048, unit=Unit.BINARY_BYTES)
        """
        return self._rebase(add_exact(self._bytes, self._operand_bytes(size, unit)))

    def minus(self, size: "DataSize | int", unit: Unit | UnsetType = UNSET) -> Self:
        """
        Returns a copy of this size with the specified size subtracted.

        The result unit follows the same rules as plus().

        Raises:
            OverflowError: If the difference overflows a signed 64-bit integer.
        """
        return self._rebase(subtract_exact(self._bytes, self._operand_bytes(size, unit)))

    def multiplied_by(self, multiplicand: int) -> Self:
        """
        Returns a copy of this size with the raw count multiplied, keeping the unit.

        Raises:
            ValueError: If the multiplicand is zero.
            OverflowError: If the product overflows a signed 64-bit integer.
        """
        multiplicand = std_int64(multiplicand, name="multiplicand")
        if multiplicand == 0:
            raise ValueError("multiplicand must be non-zero")
        if multiplicand == 1:
            return self
        return type(self)(multiply_exact(self.size, multiplicand), self.unit)

    def divided_by(self, divisor: int) -> Self:
        """
        Returns a copy of this size with the raw count divided, keeping the unit.

        The quotient is rounded HALF_UP: 3 kB divided by 2 is 2 kB.

        Raises:
            ZeroDivisionError: If the divisor is zero.
            OverflowError: If the raw count is INT64_MIN and the divisor is -1.
        """
        divisor = std_int64(divisor, name="divisor")
        if divisor == 0:
            raise ZeroDivisionError("division by zero")
        if divisor == 1:
            return self
        return type(self)(divide_exact(self.size, divisor, RoundingMode.HALF_UP), self.unit)

    def negated(self) -> Self:
        """Returns a copy of this size with the raw count negated."""
        return type(self)(negate_exact(self.size), self.unit)

    def abs(self) -> Self:
        """Returns this size if it is not negative, a copy with a positive raw count otherwise."""
        if self.is_negative():
            return type(self)(abs_exact(self.size), self.unit)
        return self

    def is_negative(self) -> bool:
        """Checks if the size in bytes is negative, excluding zero."""
        return self._bytes < 0

    def is_zero(self) -> bool:
        """Checks if the size in bytes is zero."""
        return self._bytes == 0

    # Display ----------------------------------------------------------------------------------------------------------

    def format(self, *, locale: str | None = None, number_format: NumberFormat | None = None) -> str:
        """
        Formats the raw (size, unit) pair with another locale or number format.

        The cached str() of this instance is not affected.

        Examples:
            >>> DataSize.of(2500, Unit.KILOBYTES).format(locale="de_DE")
            '2,5MB'
        """
        return get_formatter(locale, number_format).format(self.size, self.unit)

    # Dunder Methods ---------------------------------------------------------------------------------------------------

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size}, unit={self.unit!r})"

    def __hash__(self) -> int:
        return hash(self._bytes)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self._bytes == other._bytes

    def __lt__(self, other) -> bool:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self._bytes < other._bytes

    def __le__(self, other) -> bool:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self._bytes <= other._bytes

    def __gt__(self, other) -> bool:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self._bytes > other._bytes

    def __ge__(self, other) -> bool:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self._bytes >= other._bytes

    def __add__(self, other) -> Self:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self.plus(other)

    def __sub__(self, other) -> Self:
        if not isinstance(other, DataSize):
            return NotImplemented
        return self.minus(other)

    def __neg__(self) -> Self:
        return self.negated()

    def __abs__(self) -> Self:
        return self.abs()

    def __mul__(self, other) -> Self:
        if isinstance(other, bool) or not hasattr(other, "__index__"):
            return NotImplemented
        return self.multiplied_by(other)

    __rmul__ = __mul__

    def __reduce__(self) -> tuple:
        """Persist only (size, unit); the byte size and text are recomputed on load."""
        return (type(self), (self.size, self.unit))

    # Private Methods --------------------------------------------------------------------------------------------------

    def _operand_bytes(self, size: "DataSize | int", unit: Unit | UnsetType) -> int:
        if isinstance(size, DataSize):
            if unit is not UNSET:
                raise TypeError("unit must not be given together with a DataSize operand")
            return size._bytes
        if unit is UNSET:
            raise TypeError(f"unit is required with a raw count, but got only {fmt_type(size)}")
        if not isinstance(unit, Unit):
            raise TypeError(f"unit must be Unit, but got {fmt_type(unit)}")
        return convert(size, unit, Unit.BYTES)

    def _rebase(self, size_in_bytes: int) -> Self:
        if self.unit.is_bit:
            return type(self)(convert(size_in_bytes, Unit.BYTES, Unit.BITS), Unit.BITS)
        return type(self)(size_in_bytes, self.unit.system.finest)


# Methods --------------------------------------------------------------------------------------------------------------

def parse_size(
        text: str,
        unit: Unit | UnsetType = UNSET,
        *,
        locale: str | None = None,
        number_format: NumberFormat | None = None,
) -> DataSize:
    """
    Parse a DataSize from a human-readable string.

    Examples:
        >>> parse_size("2.5 MiB")
        DataSize(size=2560, unit=Unit.KIBIBYTES)
        >>> parse_size("1,5kB", locale="de_DE")
        DataSize(size=1500, unit=Unit.BYTES)
    """
    return DataSize.parse(text, unit, locale=locale, number_format=number_format)
