"""
Human-readable formatting and parsing of bit and byte sizes.

Formats a (size, unit) pair to the most natural compact string, like "2.5MiB"
or "999.999kB", and parses such strings back into a (size, unit) pair.
"""

# ## Scope
#
# Formatting is deliberately lossy: the displayed number carries at most
# DisplayConf.MAX_FRACTION_DIGITS fraction digits and parsing rounds fractions
# away from zero. Format followed by parse is NOT guaranteed to return an
# equal size, and neither is parse followed by format.
#
# ## Boundary correction
#
# A value just below a step base may round up to the base itself, e.g.
# 999_999_999 bits is 999.999999 Mb and formats as "1,000". Such output is
# replaced with "1" of the next coarser unit: "1Gb".

# Standard library -----------------------------------------------------------------------------------------------------
import math
import re
import threading
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Callable, Self

# Local ----------------------------------------------------------------------------------------------------------------
from .numeric import INT64_MAX, INT64_MIN, RoundingMode, ceil_to_multiple, floor_to_multiple, round_decimal, std_int64
from .sentinels import UNSET, UnsetType
from .units import Unit
from .utils import fmt_type, fmt_value


# @formatter:off

class DisplayConf:
    """
    Default configuration constants for size formatting.

    Attributes:
        MAX_FRACTION_DIGITS: Maximum number of fraction digits in a formatted number.
        DEFAULT_LOCALE: Locale tag of the default formatter.
        LOCALE_SYMBOLS: Locale tag to (decimal separator, grouping separator).
            An empty grouping separator disables digit grouping.
        BYTE_FRACTION: Granularity of fractional byte values (one bit).
    """

    MAX_FRACTION_DIGITS = 3

    DEFAULT_LOCALE = "en_US"

    LOCALE_SYMBOLS = {
        "C":     (".", ""),
        "de_CH": (".", "\u2019"),
        "de_DE": (",", "."),
        "en_GB": (".", ","),
        "en_US": (".", ","),
        "es_ES": (",", "."),
        "fr_FR": (",", "\u202f"),
        "it_IT": (",", "."),
        "ja_JP": (".", ","),
        "pt_BR": (",", "."),
        "ru_RU": (",", "\u00a0"),
    }

    BYTE_FRACTION = 0.125

# @formatter:on


# Classes --------------------------------------------------------------------------------------------------------------

class ParseError(ValueError):
    """
    Raised when a string cannot be parsed as a number or a size.

    Attributes:
        text: The text which failed to parse.
        error_offset: Position in the original string where parsing failed.
    """

    def __init__(self, message: str, text: str, error_offset: int):
        super().__init__(message)
        self.text = text
        self.error_offset = error_offset


@dataclass(frozen=True)
class NumberFormat:
    """
    Locale-style numeral formatter and parser.

    Formats numbers with a decimal separator, optional digit grouping and at most
    max_fraction_digits fraction digits, rounding half-even. Parses a leading
    signed number of the same shape from a string, leaving the rest unconsumed.

    Examples:
        >>> NumberFormat().format(1234.5)
        '1,234.5'
        >>> NumberFormat(decimal_sep=",", group_sep=".").format(1234.5678)
        '1.234,568'
        >>> NumberFormat().parse("2.5MB")
        (Decimal('2.5'), 3)
    """

    decimal_sep: str = "."
    group_sep: str = ","
    max_fraction_digits: int = DisplayConf.MAX_FRACTION_DIGITS

    def __post_init__(self):
        if not isinstance(self.decimal_sep, str) or len(self.decimal_sep) != 1:
            raise ValueError(f"decimal_sep must be a single character, but got {fmt_value(self.decimal_sep)}")
        if not isinstance(self.group_sep, str) or len(self.group_sep) > 1:
            raise ValueError(f"group_sep must be empty or a single character, but got {fmt_value(self.group_sep)}")
        if self.group_sep == self.decimal_sep:
            raise ValueError("group_sep and decimal_sep must differ")
        if self.decimal_sep.isdigit() or self.group_sep.isdigit() or "-" in (self.decimal_sep, self.group_sep):
            raise ValueError("separators must not be digits or a minus sign")
        if isinstance(self.max_fraction_digits, bool) or not isinstance(self.max_fraction_digits, int):
            raise TypeError(f"max_fraction_digits must be int, but got {fmt_type(self.max_fraction_digits)}")
        if self.max_fraction_digits < 0:
            raise ValueError(f"max_fraction_digits must be >= 0, got {self.max_fraction_digits}")

    @classmethod
    def for_locale(cls, locale: str, max_fraction_digits: int = DisplayConf.MAX_FRACTION_DIGITS) -> Self:
        """
        Create a NumberFormat with the separators of the given locale tag.

        Tags are matched as "ll_CC" ("en-US" is accepted as "en_US"); a bare
        language ("de") selects its main country (de_DE), see normalize_locale().

        Raises:
            ValueError: If the locale is unknown.
        """
        decimal_sep, group_sep = DisplayConf.LOCALE_SYMBOLS[normalize_locale(locale)]
        return cls(decimal_sep=decimal_sep, group_sep=group_sep, max_fraction_digits=max_fraction_digits)

    def format(self, number: int | float | Decimal) -> str:
        """
        Format a number.

        Integers are printed exactly, floats and Decimals are rounded half-even
        to max_fraction_digits with trailing zeros removed.

        Raises:
            ValueError: If number is NaN or infinite.
            TypeError: If number is not int, float or Decimal.
        """
        if isinstance(number, bool) or not isinstance(number, (int, float, Decimal)):
            raise TypeError(f"number must be int | float | Decimal, but got {fmt_type(number)}")

        if isinstance(number, int):
            negative = number < 0
            int_digits, frac_digits = str(abs(number)), ""
        else:
            finite = number.is_finite() if isinstance(number, Decimal) else math.isfinite(number)
            if not finite:
                raise ValueError(f"cannot format non-finite number {fmt_value(number)}")
            rounded = round_decimal(number, self.max_fraction_digits, RoundingMode.HALF_EVEN)
            negative = rounded < 0
            int_part, _, frac_part = f"{abs(rounded):f}".partition(".")
            int_digits, frac_digits = int_part, frac_part.rstrip("0")

        if int_digits == "0" and not frac_digits:
            negative = False

        text = self._group(int_digits)
        if frac_digits:
            text = f"{text}{self.decimal_sep}{frac_digits}"
        return f"-{text}" if negative else text

    def parse(self, text: str, pos: int = 0) -> tuple[int | Decimal, int]:
        """
        Parse a leading signed number starting at pos.

        Parsing stops at the first character which cannot continue the number,
        the rest of the string is not examined.

        Args:
            text: The string to parse.
            pos: Start position.

        Returns:
            (number, end) where number is an int when the value is integral and
            fits a signed 64-bit integer, a Decimal otherwise; end is the index
            of the first unconsumed character.

        Raises:
            ParseError: If no number starts at pos.
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be str, but got {fmt_type(text)}")

        match = self._pattern.match(text, pos)
        if match is None or not (match.group("int") or match.group("frac")):
            raise ParseError(f"cannot parse number: {text[pos:]!r}", text, pos)

        int_digits = match.group("int") or ""
        if self.group_sep:
            int_digits = int_digits.replace(self.group_sep, "")
        frac_digits = match.group("frac") or ""
        sign = "-" if match.group("sign") == "-" else ""

        value = Decimal(f"{sign}{int_digits or '0'}.{frac_digits or '0'}")
        if value == value.to_integral_value() and INT64_MIN <= value <= INT64_MAX:
            return int(value), match.end()
        return value, match.end()

    def parse_number(self, text: str) -> int | Decimal:
        """
        Parse a string which must consist of a number only.

        Raises:
            ParseError: If the string is not a number or has trailing characters.
        """
        number, end = self.parse(text)
        if end != len(text):
            raise ParseError(f"unexpected trailing characters: {text[end:]!r}", text, end)
        return number

    @property
    def _pattern(self) -> re.Pattern:
        return _number_pattern(self.decimal_sep, self.group_sep)

    def _group(self, digits: str) -> str:
        if not self.group_sep or len(digits) <= 3:
            return digits
        head = len(digits) % 3 or 3
        groups = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
        return self.group_sep.join(groups)


class NumberFormatCache:
    """
    Thread-safe cache of NumberFormat instances keyed by a locale tag.

    Entries are created lazily on first lookup and never evicted. Concurrent
    lookups of a missing key construct the formatter at most once.
    """

    def __init__(self, factory: Callable[[str], NumberFormat] = NumberFormat.for_locale):
        self._factory = factory
        self._formats: dict[str, NumberFormat] = {}
        self._lock = threading.Lock()

    def __contains__(self, locale: str) -> bool:
        return locale in self._formats

    def __len__(self) -> int:
        return len(self._formats)

    def get(self, locale: str) -> NumberFormat:
        """Returns the cached NumberFormat of the locale, creating it on first use."""
        key = normalize_locale(locale)
        number_format = self._formats.get(key)
        if number_format is not None:
            return number_format

        with self._lock:
            number_format = self._formats.get(key)
            if number_format is None:
                number_format = self._factory(key)
                if not isinstance(number_format, NumberFormat):
                    raise TypeError(f"factory must return NumberFormat, but got {fmt_type(number_format)}")
                self._formats[key] = number_format
            return number_format


number_formats = NumberFormatCache()


@dataclass(frozen=True)
class DataSizeFormatter:
    """
    Formatter for printing and parsing human-readable strings of bit and byte sizes.

    For most use cases, prefer the factory class methods:
    - DataSizeFormatter.default() for the default locale
    - DataSizeFormatter.using("de_DE") for another locale

    Examples:
        >>> DataSizeFormatter.default().format(2560, Unit.KIBIBYTES)
        '2.5MiB'
        >>> DataSizeFormatter.using("de_DE").format(2500, Unit.KILOBYTES)
        '2,5MB'
    """

    number_format: NumberFormat = field(default_factory=NumberFormat)

    def __post_init__(self):
        if not isinstance(self.number_format, NumberFormat):
            raise TypeError(f"number_format must be NumberFormat, but got {fmt_type(self.number_format)}")

    @classmethod
    def default(cls) -> Self:
        """Returns the formatter of DisplayConf.DEFAULT_LOCALE."""
        return _DEFAULT_FORMATTER

    @classmethod
    def using(cls, locale: str, *, cache: NumberFormatCache | None = None) -> Self:
        """
        Returns a formatter which formats numbers with the specified locale.

        Args:
            locale: Locale tag, e.g. "en_US" or "de-DE".
            cache: NumberFormat cache to use, the module-level number_formats by default.
        """
        cache_ = number_formats if cache is None else cache
        return cls(number_format=cache_.get(locale))

    def format(self, size: int, unit: Unit) -> str:
        """
        Formats the specified size into a human-readable string.

        The value climbs to coarser units while its magnitude is >= the system's
        step base and a coarser unit exists, so output stays in [1, base) except
        at the system's largest unit. Fractions of a bit are rounded away from
        zero to whole bits, fractions of a byte to eighths of a byte.

        Args:
            size: Signed 64-bit count in the given unit.
            unit: The unit of the size.

        Returns:
            The number immediately followed by the unit symbol, e.g. "1.5kB".

        Raises:
            TypeError: If unit is not a Unit or size is not an integer.
            OverflowError: If a floating-point intermediate is not finite.

        Examples:
            >>> DataSizeFormatter.default().format(2500, Unit.KILOBYTES)
            '2.5MB'
            >>> DataSizeFormatter.default().format(999_999_999, Unit.BITS)
            '1Gb'
        """
        if not isinstance(unit, Unit):
            raise TypeError(f"unit must be Unit, but got {fmt_type(unit)}")
        size = std_int64(size, name="size")

        base = unit.system.base
        last = unit.system.largest
        value = float(size)

        if size >= 0:
            while value >= base and unit is not last:
                value /= base
                unit = unit.coarser
        else:
            while value <= -base and unit is not last:
                value /= base
                unit = unit.coarser

        # Neither fractional bits nor fractions of a byte other than multiples of 1/8
        if unit is Unit.BITS:
            value = math.ceil(value) if value > 0 else math.floor(value)
        elif unit in (Unit.BYTES, Unit.BINARY_BYTES):
            value = ceil_to_multiple(value, DisplayConf.BYTE_FRACTION) if value > 0 \
                else floor_to_multiple(value, DisplayConf.BYTE_FRACTION)

        if not math.isfinite(value):
            raise OverflowError("result is infinite")

        number = self.number_format.format(value)

        if unit is not last and abs(self._reparse(number)) == base:
            return f"{self.number_format.format(-1 if size < 0 else 1)}{unit.coarser.symbol}"

        return f"{number}{unit.symbol}"

    def parse(self, text: str, unit: Unit | UnsetType = UNSET) -> tuple[int, Unit]:
        """
        Parse a (size, unit) pair from a string such as the one produced by format().

        The string starts with an optional sign and a number in this formatter's
        locale, followed by optional whitespace and a unit symbol or name (see
        Unit.lookup). When a unit is given, the text after the number is ignored.

        A fractional number in a unit other than the finest unit of its system is
        scaled by the step base to the next finer unit; the result is then rounded
        away from zero to an integer.

        Warning:
            This method is free to round the value represented by the string. Two
            sizes with identical strings are not guaranteed to be equal.

        Args:
            text: The string to parse.
            unit: Unit of the number; read from the text when not given.

        Returns:
            (size, unit) tuple.

        Raises:
            ParseError: If the string has no number or no known unit.
            TypeError: If unit is given but is not a Unit.
            OverflowError: If the resulting size overflows a signed 64-bit integer.

        Examples:
            >>> DataSizeFormatter.default().parse("1.5kB")
            (1500, Unit.BYTES)
            >>> DataSizeFormatter.default().parse("1 KiB")
            (1, Unit.KIBIBYTES)
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be str, but got {fmt_type(text)}")
        if unit is not UNSET and not isinstance(unit, Unit):
            raise TypeError(f"unit must be Unit, but got {fmt_type(unit)}")

        number, end = self.number_format.parse(text)

        if unit is UNSET:
            unit = _parse_unit(text, end)

        if isinstance(number, int):
            return number, unit

        if not unit.is_finest:
            # Wide enough for an exact product, whatever the caller's context
            with localcontext() as ctx:
                ctx.prec = max(ctx.prec, len(number.as_tuple().digits) + 5)
                number = number * unit.system.base
            unit = unit.finer

        rounded = math.ceil(number) if number > 0 else math.floor(number)
        if not INT64_MIN <= rounded <= INT64_MAX:
            raise OverflowError(f"size out of signed 64-bit range: {text!r}")
        return rounded, unit

    def _reparse(self, number: str) -> int | Decimal:
        try:
            return self.number_format.parse_number(number)
        except ParseError as exc:
            raise AssertionError(f"formatter cannot parse its own output {number!r}") from exc


# Methods --------------------------------------------------------------------------------------------------------------

def format_size(
        size: int,
        unit: Unit,
        *,
        locale: str | None = None,
        number_format: NumberFormat | None = None,
) -> str:
    """
    Formats the specified size into a human-readable string.

    Args:
        size: Signed 64-bit count in the given unit.
        unit: The unit of the size.
        locale: Locale tag for number formatting. Mutually exclusive with number_format.
        number_format: Explicit NumberFormat. Mutually exclusive with locale.

    Examples:
        >>> format_size(1536, Unit.BINARY_BYTES)
        '1.5KiB'
        >>> format_size(1536, Unit.BINARY_BYTES, locale="fr_FR")
        '1,5KiB'
    """
    return get_formatter(locale, number_format).format(size, unit)


def parse_parts(
        text: str,
        unit: Unit | UnsetType = UNSET,
        *,
        locale: str | None = None,
        number_format: NumberFormat | None = None,
) -> tuple[int, Unit]:
    """Parse a (size, unit) pair from a string, see DataSizeFormatter.parse()."""
    return get_formatter(locale, number_format).parse(text, unit)


def get_formatter(locale: str | None = None, number_format: NumberFormat | None = None) -> DataSizeFormatter:
    """
    Returns the formatter for a locale tag or an explicit NumberFormat, the default formatter if neither is given.

    Raises:
        ValueError: If both locale and number_format are given, or the locale is unknown.
    """
    if locale is not None and number_format is not None:
        raise ValueError("cannot specify both 'locale' and 'number_format'")
    if number_format is not None:
        return DataSizeFormatter(number_format=number_format)
    if locale is not None:
        return DataSizeFormatter.using(locale)
    return DataSizeFormatter.default()


def normalize_locale(locale: str) -> str:
    """
    Normalize a locale tag to a DisplayConf.LOCALE_SYMBOLS key.

    Examples:
        >>> normalize_locale("de-de")
        'de_DE'
        >>> normalize_locale("fr")
        'fr_FR'

    Raises:
        TypeError: If locale is not a str.
        ValueError: If the locale is unknown.
    """
    if not isinstance(locale, str):
        raise TypeError(f"locale must be str, but got {fmt_type(locale)}")

    # Drop encoding and modifier, e.g. "de_DE.UTF-8@euro"
    tag = locale.strip().split(".")[0].split("@")[0].replace("-", "_")
    if tag.upper() in ("C", "POSIX"):
        return "C"

    language, _, country = tag.partition("_")
    key = f"{language.lower()}_{country.upper()}" if country else language.lower()
    if key in DisplayConf.LOCALE_SYMBOLS:
        return key

    if not country:
        # Prefer "ll_LL", then the default locale, then the first configured country
        candidates = [c for c in DisplayConf.LOCALE_SYMBOLS if c.partition("_")[0] == key]
        for preferred in (f"{key}_{key.upper()}", DisplayConf.DEFAULT_LOCALE):
            if preferred in candidates:
                return preferred
        if candidates:
            return candidates[0]

    raise ValueError(f"unknown locale {fmt_value(locale)}, expected one of {sorted(DisplayConf.LOCALE_SYMBOLS)}")


# Private Methods ------------------------------------------------------------------------------------------------------

_UNIT_TOKEN = re.compile(r"\w(?:.*\w)?", re.DOTALL)

_PATTERNS: dict[tuple[str, str], re.Pattern] = {}
_PATTERNS_LOCK = threading.Lock()


def _number_pattern(decimal_sep: str, group_sep: str) -> re.Pattern:
    key = (decimal_sep, group_sep)
    pattern = _PATTERNS.get(key)
    if pattern is None:
        if group_sep:
            int_part = rf"\d+(?:{re.escape(group_sep)}\d+)*"
        else:
            int_part = r"\d+"
        pattern = re.compile(rf"(?P<sign>[-+])?(?P<int>{int_part})?(?:{re.escape(decimal_sep)}(?P<frac>\d+))?")
        with _PATTERNS_LOCK:
            pattern = _PATTERNS.setdefault(key, pattern)
    return pattern


def _parse_unit(text: str, pos: int) -> Unit:
    """
    Match the unit token in text after pos: the span from its first to its last word character.

    The whole remainder is the token, so "1.5 kB/s" or "3MB free" fail with the
    token "kB/s" or "MB free" rather than silently dropping the trailing text.
    """
    match = _UNIT_TOKEN.search(text, pos)
    if match is None:
        raise ParseError(f"missing unit in {text!r}", text, pos)

    unit = Unit.lookup(match.group())
    if unit is None:
        raise ParseError(
            f"cannot parse {match.group()!r} as a bit, decimal byte or binary byte unit", match.group(), match.start()
        )
    return unit


# Requires normalize_locale() and the NumberFormat factory defined above
_DEFAULT_FORMATTER = DataSizeFormatter(number_format=number_formats.get(DisplayConf.DEFAULT_LOCALE))


# Module Sanity Checks -------------------------------------------------------------------------------------------------

if DisplayConf.DEFAULT_LOCALE not in DisplayConf.LOCALE_SYMBOLS:
    raise AssertionError("Configuration Error: DisplayConf.DEFAULT_LOCALE must be a key of LOCALE_SYMBOLS.")
