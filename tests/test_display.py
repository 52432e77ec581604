#
# Datasize - Display Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import importlib.util
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError
from decimal import Decimal, localcontext

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from datasize.display import DataSizeFormatter, DisplayConf, NumberFormat, NumberFormatCache, ParseError
from datasize.display import format_size, get_formatter, normalize_locale, number_formats, parse_parts
from datasize.numeric import INT64_MAX, INT64_MIN
from datasize.units import Unit


# Tests ----------------------------------------------------------------------------------------------------------------

class TestNumberFormat:

    @pytest.mark.parametrize("number, expected", [
        pytest.param(0, "0", id="zero"),
        pytest.param(999, "999", id="no_grouping_needed"),
        pytest.param(1_234_567, "1,234,567", id="int_grouped"),
        pytest.param(-1234, "-1,234", id="negative_int"),
        pytest.param(1234.5, "1,234.5", id="float"),
        pytest.param(2.0, "2", id="float_integral"),
        pytest.param(0.0, "0", id="float_zero"),
        pytest.param(-0.0001, "0", id="negative_rounds_to_zero"),
        pytest.param(Decimal("1.0005"), "1", id="half_even_down"),
        pytest.param(Decimal("1.0015"), "1.002", id="half_even_up"),
        pytest.param(999.9996, "1,000", id="rounds_to_next_thousand"),
        pytest.param(Decimal("-2.5"), "-2.5", id="negative_decimal"),
    ])
    def test_format(self, number, expected):
        assert NumberFormat().format(number) == expected

    @pytest.mark.parametrize("locale, number, expected", [
        pytest.param("de_DE", 1234.5678, "1.234,568", id="de_DE"),
        pytest.param("fr_FR", 1234.5, "1\u202f234,5", id="fr_FR"),
        pytest.param("de_CH", 1234.5, "1\u2019234.5", id="de_CH"),
        pytest.param("ru_RU", -1234.5, "-1\u00a0234,5", id="ru_RU"),
        pytest.param("C", 1_234_567.5, "1234567.5", id="C_no_grouping"),
    ])
    def test_format_locale(self, locale, number, expected):
        assert NumberFormat.for_locale(locale).format(number) == expected

    def test_max_fraction_digits(self):
        assert NumberFormat(max_fraction_digits=0).format(2.5) == "2"
        assert NumberFormat(max_fraction_digits=5).format(1.234567) == "1.23457"

    @pytest.mark.parametrize("number, exc", [
        pytest.param(float("nan"), ValueError, id="nan"),
        pytest.param(float("-inf"), ValueError, id="inf"),
        pytest.param(Decimal("Infinity"), ValueError, id="decimal_inf"),
        pytest.param("1", TypeError, id="str"),
        pytest.param(True, TypeError, id="bool"),
        pytest.param(None, TypeError, id="none"),
    ])
    def test_format_invalid(self, number, exc):
        with pytest.raises(exc):
            NumberFormat().format(number)

    @pytest.mark.parametrize("kwargs", [
        pytest.param(dict(decimal_sep=",", group_sep=","), id="same_separators"),
        pytest.param(dict(decimal_sep=""), id="empty_decimal_sep"),
        pytest.param(dict(decimal_sep=".."), id="long_decimal_sep"),
        pytest.param(dict(group_sep="1"), id="digit_separator"),
        pytest.param(dict(decimal_sep="-"), id="minus_separator"),
        pytest.param(dict(max_fraction_digits=-1), id="negative_fraction_digits"),
    ])
    def test_invalid_config(self, kwargs):
        with pytest.raises(ValueError):
            NumberFormat(**kwargs)

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            NumberFormat().decimal_sep = ","

    @pytest.mark.parametrize("text, expected", [
        pytest.param("2.5MB", (Decimal("2.5"), 3), id="fraction"),
        pytest.param("1,234kB", (1234, 5), id="grouped"),
        pytest.param("-42 b", (-42, 3), id="negative"),
        pytest.param("+7B", (7, 2), id="plus_sign"),
        pytest.param(".5kB", (Decimal("0.5"), 2), id="no_int_part"),
        pytest.param("1.kB", (1, 1), id="dangling_decimal_sep"),
        pytest.param("3.000", (3, 5), id="integral_fraction"),
    ])
    def test_parse(self, text, expected):
        number, end = NumberFormat().parse(text)
        assert (number, end) == expected
        assert type(number) is type(expected[0])

    def test_parse_position(self):
        assert NumberFormat().parse("size: 12 kB", pos=6) == (12, 8)

    def test_parse_huge_integer(self):
        number, _ = NumberFormat().parse("99999999999999999999")
        assert number == Decimal("99999999999999999999")
        assert isinstance(number, Decimal)

    def test_parse_locale(self):
        assert NumberFormat.for_locale("de_DE").parse("1.234,5kB") == (Decimal("1234.5"), 7)

    @pytest.mark.parametrize("text", [
        pytest.param("kB", id="no_digits"),
        pytest.param("-", id="sign_only"),
        pytest.param("", id="empty"),
        pytest.param(" 1", id="leading_space"),
    ])
    def test_parse_no_number(self, text):
        with pytest.raises(ParseError) as exc_info:
            NumberFormat().parse(text)
        assert exc_info.value.error_offset == 0
        assert exc_info.value.text == text

    def test_parse_number(self):
        assert NumberFormat().parse_number("1,000") == 1000
        with pytest.raises(ParseError, match=r"unexpected trailing characters") as exc_info:
            NumberFormat().parse_number("12x")
        assert exc_info.value.error_offset == 2

    def test_parse_error_is_value_error(self):
        assert issubclass(ParseError, ValueError)


class TestNormalizeLocale:

    @pytest.mark.parametrize("locale, expected", [
        pytest.param("en_US", "en_US", id="canonical"),
        pytest.param("en-US", "en_US", id="dash"),
        pytest.param("EN_us", "en_US", id="case"),
        pytest.param("de_DE.UTF-8", "de_DE", id="encoding"),
        pytest.param("de_DE@euro", "de_DE", id="modifier"),
        pytest.param("de", "de_DE", id="bare_language_main_country"),
        pytest.param("en", "en_US", id="bare_language_default_locale"),
        pytest.param("pt", "pt_BR", id="bare_language_only_country"),
        pytest.param("POSIX", "C", id="posix"),
        pytest.param("c", "C", id="c"),
    ])
    def test_normalize(self, locale, expected):
        assert normalize_locale(locale) == expected

    def test_unknown(self):
        with pytest.raises(ValueError, match=r"unknown locale"):
            normalize_locale("xx_YY")

    def test_type(self):
        with pytest.raises(TypeError, match=r"locale must be str, but got <NoneType>"):
            normalize_locale(None)


class TestNumberFormatCache:

    def test_lazy_and_normalized(self, format_cache, counting_factory):
        assert len(format_cache) == 0
        first = format_cache.get("de-DE")
        second = format_cache.get("de_DE")
        assert first is second
        assert "de_DE" in format_cache
        assert len(format_cache) == 1
        assert counting_factory.calls == ["de_DE"]

    def test_concurrent_lookup_constructs_once(self, format_cache, counting_factory):
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: format_cache.get("fr_FR"), range(64)))
        assert all(r is results[0] for r in results)
        assert counting_factory.calls == ["fr_FR"]

    def test_factory_must_return_number_format(self):
        cache = NumberFormatCache(factory=lambda locale: object())
        with pytest.raises(TypeError, match=r"factory must return NumberFormat"):
            cache.get("en_US")
        assert len(cache) == 0

    def test_unknown_locale_not_cached(self, format_cache):
        with pytest.raises(ValueError):
            format_cache.get("xx_YY")
        assert len(format_cache) == 0

    def test_module_cache_has_default_locale(self):
        assert DisplayConf.DEFAULT_LOCALE in number_formats


class TestDataSizeFormatterFormat:

    # @formatter:off
    @pytest.mark.parametrize("size, unit, expected", [
        pytest.param(0,             Unit.BYTES,        "0B",          id="zero_bytes"),
        pytest.param(0,             Unit.BITS,         "0b",          id="zero_bits"),
        pytest.param(1,             Unit.BITS,         "1b",          id="one_bit"),
        pytest.param(999,           Unit.BYTES,        "999B",        id="below_base"),
        pytest.param(1000,          Unit.BYTES,        "1kB",         id="at_base"),
        pytest.param(1024,          Unit.BYTES,        "1.024kB",     id="decimal_1024"),
        pytest.param(1,             Unit.KIBIBYTES,    "1KiB",        id="one_kib"),
        pytest.param(1536,          Unit.BINARY_BYTES, "1.5KiB",      id="binary_fraction"),
        pytest.param(1023,          Unit.BINARY_BYTES, "1,023B",      id="binary_below_base"),
        pytest.param(2560,          Unit.KIBIBYTES,    "2.5MiB",      id="binary_climb"),
        pytest.param(2500,          Unit.KILOBYTES,    "2.5MB",       id="decimal_climb"),
        pytest.param(999_999,       Unit.BYTES,        "999.999kB",   id="no_correction_needed"),
        pytest.param(1_500,         Unit.MEGABITS,     "1.5Gb",       id="bit_climb"),
        pytest.param(1_000,         Unit.TERABITS,     "1,000Tb",     id="largest_bit_unit"),
        pytest.param(5_000_000,     Unit.YOTTABYTES,   "5,000,000YB", id="largest_byte_unit"),
        pytest.param(1024,          Unit.YOBIBYTES,    "1,024YiB",    id="largest_binary_unit"),
        pytest.param(INT64_MAX,     Unit.BYTES,        "9.223EB",     id="max"),
        pytest.param(INT64_MIN,     Unit.BYTES,        "-9.223EB",    id="min"),
        pytest.param(-2500,         Unit.KILOBYTES,    "-2.5MB",      id="negative"),
    ])
    # @formatter:on
    def test_format(self, size, unit, expected):
        assert DataSizeFormatter.default().format(size, unit) == expected

    # @formatter:off
    @pytest.mark.parametrize("size, unit, expected", [
        pytest.param(999_999_999,    Unit.BITS,         "1Gb",   id="bits"),
        pytest.param(999_999_600,    Unit.BYTES,        "1GB",   id="bytes"),
        pytest.param(9_999_996,      Unit.KILOBYTES,    "10GB",  id="no_correction_at_ten"),
        pytest.param(1_073_741_823,  Unit.BINARY_BYTES, "1GiB",  id="binary"),
        pytest.param(-999_999_999,   Unit.BITS,         "-1Gb",  id="negative"),
        pytest.param(999_999_600,    Unit.MEGABITS,     "1,000Tb", id="not_at_largest"),
    ])
    # @formatter:on
    def test_boundary_correction(self, size, unit, expected):
        """Output never shows the step base except at the largest unit."""
        assert DataSizeFormatter.default().format(size, unit) == expected

    @pytest.mark.parametrize("size, unit", [
        pytest.param(1, Unit.BITS, id="bit"),
        pytest.param(2560, Unit.KIBIBYTES, id="kib"),
        pytest.param(999_999_999, Unit.BITS, id="boundary"),
        pytest.param(123_456_789, Unit.BINARY_BYTES, id="binary"),
        pytest.param(INT64_MAX, Unit.BYTES, id="max"),
    ])
    def test_sign_symmetry(self, size, unit):
        formatter = DataSizeFormatter.default()
        assert formatter.format(-size, unit) == "-" + formatter.format(size, unit)

    def test_locale(self):
        assert DataSizeFormatter.using("de_DE").format(2500, Unit.KILOBYTES) == "2,5MB"
        assert DataSizeFormatter.using("fr-FR").format(1_500_000, Unit.YOTTABYTES) == "1\u202f500\u202f000YB"

    def test_using_cache(self, format_cache, counting_factory):
        formatter = DataSizeFormatter.using("it_IT", cache=format_cache)
        assert formatter.format(1536, Unit.BINARY_BYTES) == "1,5KiB"
        assert counting_factory.calls == ["it_IT"]

    def test_default_is_shared(self):
        assert DataSizeFormatter.default() is DataSizeFormatter.default()

    @pytest.mark.parametrize("size, unit, exc, match", [
        pytest.param(1, None, TypeError, r"unit must be Unit, but got <NoneType>", id="none_unit"),
        pytest.param(1, "kB", TypeError, r"unit must be Unit, but got <str>", id="str_unit"),
        pytest.param(1.5, Unit.BYTES, TypeError, r"size must be an integer", id="float_size"),
        pytest.param(2 ** 63, Unit.BYTES, OverflowError, r"out of signed 64-bit range", id="too_large"),
    ])
    def test_invalid(self, size, unit, exc, match):
        with pytest.raises(exc, match=match):
            DataSizeFormatter.default().format(size, unit)

    def test_number_format_type(self):
        with pytest.raises(TypeError, match=r"number_format must be NumberFormat"):
            DataSizeFormatter(number_format="en_US")


class TestDataSizeFormatterParse:

    # @formatter:off
    @pytest.mark.parametrize("text, expected", [
        pytest.param("1.5kB",       (1500, Unit.BYTES),        id="fraction_steps_finer"),
        pytest.param("1 KiB",       (1, Unit.KIBIBYTES),       id="integral"),
        pytest.param("2.5 MiB",     (2560, Unit.KIBIBYTES),    id="binary_fraction"),
        pytest.param("1.5b",        (2, Unit.BITS),            id="finest_bits_ceil"),
        pytest.param("-1.5b",       (-2, Unit.BITS),           id="finest_bits_floor"),
        pytest.param("0.0001kB",    (1, Unit.BYTES),           id="tiny_fraction_rounds_up"),
        pytest.param("-0.0001kB",   (-1, Unit.BYTES),          id="tiny_negative_rounds_down"),
        pytest.param("1.0001 KiB",  (1025, Unit.BINARY_BYTES), id="binary_tiny_fraction"),
        pytest.param("10 bytes",    (10, Unit.BYTES),          id="bytes_name"),
        pytest.param("10 bits",     (10, Unit.BITS),           id="bits_name"),
        pytest.param("1b",          (1, Unit.BITS),            id="single_char_bit"),
        pytest.param("1 B",         (1, Unit.BYTES),           id="single_char_byte"),
        pytest.param("3 megabits",  (3, Unit.MEGABITS),        id="megabits"),
        pytest.param("2 PB",        (2, Unit.PETABYTES),       id="petabytes"),
        pytest.param("1 Gb",        (1, Unit.GIGABITS),        id="gigabits"),
        pytest.param("4 GiB ",      (4, Unit.GIBIBYTES),       id="trailing_space"),
        pytest.param("7 (kB)",      (7, Unit.KILOBYTES),       id="punctuation_trimmed"),
        pytest.param("1,024 MB",    (1024, Unit.MEGABYTES),    id="grouped"),
    ])
    # @formatter:on
    def test_parse(self, text, expected):
        assert DataSizeFormatter.default().parse(text) == expected

    def test_parse_with_unit(self):
        formatter = DataSizeFormatter.default()
        assert formatter.parse("12", Unit.MEGABYTES) == (12, Unit.MEGABYTES)
        assert formatter.parse("1.5", Unit.KILOBYTES) == (1500, Unit.BYTES)
        assert formatter.parse("12 whatever", Unit.GIGABITS) == (12, Unit.GIGABITS)

    def test_parse_locale(self):
        assert DataSizeFormatter.using("de_DE").parse("1,5kB") == (1500, Unit.BYTES)

    def test_missing_unit(self):
        with pytest.raises(ParseError, match=r"missing unit") as exc_info:
            DataSizeFormatter.default().parse("12  ")
        assert exc_info.value.error_offset == 2

    def test_unknown_unit(self):
        with pytest.raises(ParseError, match=r"cannot parse 'parsecs'") as exc_info:
            DataSizeFormatter.default().parse("12 parsecs")
        assert exc_info.value.text == "parsecs"
        assert exc_info.value.error_offset == 3

    def test_no_number(self):
        with pytest.raises(ParseError) as exc_info:
            DataSizeFormatter.default().parse("kB")
        assert exc_info.value.error_offset == 0

    def test_overflow(self):
        with pytest.raises(OverflowError, match=r"out of signed 64-bit range"):
            DataSizeFormatter.default().parse("9223372036854775808 B")
        with pytest.raises(OverflowError):
            DataSizeFormatter.default().parse("-9300000000000000.5 kB")

    @pytest.mark.parametrize("unit", [
        pytest.param(None, id="none"),
        pytest.param("kB", id="str"),
    ])
    def test_invalid_unit(self, unit):
        with pytest.raises(TypeError, match=r"unit must be Unit"):
            DataSizeFormatter.default().parse("12", unit)

    def test_text_type(self):
        with pytest.raises(TypeError, match=r"text must be str, but got <bytes>"):
            DataSizeFormatter.default().parse(b"12 kB")

    def test_long_fraction_scaled_exactly(self):
        assert DataSizeFormatter.default().parse("1.00000000000000000000000000001kB") == (1001, Unit.BYTES)
        assert DataSizeFormatter.default().parse("-1.00000000000000000000000000001kB") == (-1001, Unit.BYTES)

    @pytest.mark.parametrize("text, expected", [
        pytest.param("1.2345MiB", (1265, Unit.KIBIBYTES), id="positive"),
        pytest.param("-1.2345MiB", (-1265, Unit.KIBIBYTES), id="negative"),
        pytest.param("1.5kB", (1500, Unit.BYTES), id="exact"),
    ])
    def test_ignores_caller_decimal_precision(self, text, expected):
        with localcontext() as ctx:
            ctx.prec = 3
            assert DataSizeFormatter.default().parse(text) == expected
            assert ctx.prec == 3

    @pytest.mark.parametrize("text, token, offset", [
        pytest.param("1.5 kB/s", "kB/s", 4, id="rate"),
        pytest.param("3MB free", "MB free", 1, id="trailing_word"),
    ])
    def test_trailing_text_is_part_of_unit(self, text, token, offset):
        """The unit token spans the whole remainder, trailing text is never dropped."""
        with pytest.raises(ParseError, match=r"cannot parse") as exc_info:
            DataSizeFormatter.default().parse(text)
        assert exc_info.value.text == token
        assert exc_info.value.error_offset == offset

    def test_trailing_text_ignored_with_explicit_unit(self):
        assert DataSizeFormatter.default().parse("3MB free", Unit.MEGABYTES) == (3, Unit.MEGABYTES)


class TestModuleFunctions:

    def test_format_size(self):
        assert format_size(1536, Unit.BINARY_BYTES) == "1.5KiB"
        assert format_size(1536, Unit.BINARY_BYTES, locale="fr_FR") == "1,5KiB"
        nf = NumberFormat(decimal_sep=",", group_sep="", max_fraction_digits=1)
        assert format_size(1_234_567, Unit.BYTES, number_format=nf) == "1,2MB"

    def test_parse_parts(self):
        assert parse_parts("1.5kB") == (1500, Unit.BYTES)
        assert parse_parts("1,5kB", locale="de") == (1500, Unit.BYTES)
        assert parse_parts("3", Unit.TERABITS) == (3, Unit.TERABITS)

    def test_locale_and_number_format_exclusive(self):
        with pytest.raises(ValueError, match=r"cannot specify both"):
            get_formatter("en_US", NumberFormat())

    def test_get_formatter_default(self):
        assert get_formatter() is DataSizeFormatter.default()


class TestModuleImport:

    def test_fresh_import(self, monkeypatch):
        """Executing the module body from scratch builds the default formatter."""
        origin = importlib.util.find_spec("datasize.display").origin
        spec = importlib.util.spec_from_file_location("datasize.display_fresh", origin)
        module = importlib.util.module_from_spec(spec)
        monkeypatch.setitem(sys.modules, spec.name, module)
        spec.loader.exec_module(module)

        formatter = module.DataSizeFormatter.default()
        assert (formatter.number_format.decimal_sep, formatter.number_format.group_sep) == (".", ",")
        assert formatter.format(1536, Unit.BINARY_BYTES) == "1.5KiB"
        assert DisplayConf.DEFAULT_LOCALE in module.number_formats
