"""Built-in modifiers.

Modifiers post-process a resolved variable before it is emitted:

    {{price:format=currency}}   locale-aware number/date formatting
    {{query:^url}}              URL (form) encoding
    {{title:^html}}             markup escaping (also ^xml)
    {{text:^json}}              JSON string escaping
    {{cell:^csv}}               CSV quote doubling

Locale-aware formatting uses Babel (CLDR data).
"""

import re
from datetime import date, datetime, time
from typing import Any
from urllib.parse import quote_plus

from babel import Locale
from babel.dates import format_date, format_datetime, format_time
from babel.numbers import (
    format_currency,
    format_percent,
    get_decimal_symbol,
    get_group_symbol,
    get_territory_currencies,
)

from stencil.values import to_text

# Currency code used when the locale has no territory
UNKNOWN_CURRENCY = "XXX"

_DATE_STYLES = {
    "fullDate": "full",
    "longDate": "long",
    "mediumDate": "medium",
    "shortDate": "short",
}

_TIME_STYLES = {
    "fullTime": "full",
    "longTime": "long",
    "mediumTime": "medium",
    "shortTime": "short",
}

_DATETIME_STYLES = {
    "fullDateTime": "full",
    "longDateTime": "long",
    "mediumDateTime": "medium",
    "shortDateTime": "short",
}

# %[flags][width][.precision]conversion, with "," as the grouping flag
_PRINTF_SPEC = re.compile(
    r"%(?P<flags>[-+ #0,]*)(?P<width>\d+)?(?:\.(?P<precision>\d*))?"
    r"(?P<conversion>[diouxXeEfFgGcrsa%])"
)

_NUMBER_CONVERSIONS = frozenset("diueEfFgG")

_MARKUP_ESCAPES = str.maketrans({
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    '"': "&quot;",
})

_JSON_ESCAPES = str.maketrans({
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
})


def _currency_for(locale: Locale) -> str:
    if locale.territory:
        currencies = get_territory_currencies(locale.territory)
        if currencies:
            return currencies[0]
    return UNKNOWN_CURRENCY


def _epoch_millis(value: date) -> int:
    if not isinstance(value, datetime):
        value = datetime.combine(value, time())
    return int(value.timestamp() * 1000)


def _local_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _local_time(value: datetime | time) -> time:
    if isinstance(value, datetime):
        value = value.time()
    return value.replace(tzinfo=None)


def _local_datetime(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


def _grouped_spec(match: re.Match) -> str:
    """Translate a printf spec with the grouping flag into a format() spec."""
    flags = match["flags"]
    align = "<" if "-" in flags else ""
    sign = "+" if "+" in flags else " " if " " in flags else ""
    alternate = "#" if "#" in flags else ""
    zero = "0" if "0" in flags and not align else ""
    precision = "" if match["precision"] is None else f".{match['precision'] or 0}"
    conversion = "d" if match["conversion"] in "iu" else match["conversion"]
    return f"{align}{sign}{alternate}{zero}{match['width'] or ''},{precision}{conversion}"


def _format_number(match: re.Match, value: Any, locale: Locale) -> str:
    if "," in match["flags"]:
        text = format(value, _grouped_spec(match))
    else:
        text = match[0] % (value,)
    separators = str.maketrans({
        ".": get_decimal_symbol(locale),
        ",": get_group_symbol(locale),
    })
    return text.translate(separators)


def _printf(argument: str, value: Any, locale: Locale) -> str:
    """Apply a printf-style format to a single value.

    Number conversions use the locale's decimal and grouping symbols and
    ``%s`` renders the value as template text. A format without any
    conversion is returned as is.

    Raises:
        TypeError: If the format has more than one conversion or the value
            does not suit the conversion
    """
    conversions = [m for m in _PRINTF_SPEC.finditer(argument) if m["conversion"] != "%"]
    if len(conversions) > 1:
        raise TypeError(f"Format takes a single value: {argument}")

    def convert(match: re.Match) -> str:
        conversion = match["conversion"]
        if conversion == "%":
            return "%"
        if conversion in _NUMBER_CONVERSIONS:
            return _format_number(match, value, locale)
        if conversion == "s":
            return match[0].replace(",", "") % (to_text(value),)
        return match[0].replace(",", "") % (value,)

    return _PRINTF_SPEC.sub(convert, argument)


def format_value(value: Any, argument: str | None, locale: Locale) -> Any:
    """Format a value according to the modifier argument.

    Args:
        value: Number, date, time or datetime to format
        argument: Named style (currency, percent, time, shortDate, ...,
            isoLocalDateTime) or a printf-style format string
        locale: Locale used for named styles and number separators

    Returns:
        Formatted value; the value itself when no argument is given
    """
    if argument is None:
        return value

    if argument == "currency":
        return format_currency(value, _currency_for(locale), locale=locale)
    if argument == "percent":
        return format_percent(value, locale=locale)
    if argument == "time":
        return _epoch_millis(value)

    if argument in _DATE_STYLES:
        return format_date(value, format=_DATE_STYLES[argument], locale=locale)
    if argument in _TIME_STYLES:
        return format_time(value, format=_TIME_STYLES[argument], locale=locale)
    if argument in _DATETIME_STYLES:
        return format_datetime(value, format=_DATETIME_STYLES[argument], locale=locale)

    if argument == "isoLocalDate":
        return _local_date(value).isoformat()
    if argument == "isoLocalTime":
        return _local_time(value).isoformat()
    if argument == "isoLocalDateTime":
        return _local_datetime(value).isoformat()

    return _printf(argument, value, locale)


def escape_url(value: Any, argument: str | None, locale: Locale) -> str:
    """Encode as application/x-www-form-urlencoded UTF-8."""
    return quote_plus(to_text(value), safe="*", encoding="utf-8")


def escape_markup(value: Any, argument: str | None, locale: Locale) -> str:
    """Escape ``<``, ``>``, ``&`` and ``"`` as character entities."""
    return to_text(value).translate(_MARKUP_ESCAPES)


def escape_json(value: Any, argument: str | None, locale: Locale) -> str:
    """Escape a value for embedding inside a JSON string literal."""
    return to_text(value).translate(_JSON_ESCAPES)


def escape_csv(value: Any, argument: str | None, locale: Locale) -> str:
    """Double every quote character for embedding in a quoted CSV field."""
    return to_text(value).replace('"', '""')


BUILTIN_MODIFIERS = {
    "format": format_value,
    "^url": escape_url,
    "^html": escape_markup,
    "^xml": escape_markup,
    "^json": escape_json,
    "^csv": escape_csv,
}
