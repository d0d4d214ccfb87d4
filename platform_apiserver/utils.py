import re
from datetime import timedelta

_DURATION_UNITS = {
    "ns": timedelta(microseconds=0.001),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "μs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_TRUE_VALUES = frozenset(("1", "t", "true"))
_FALSE_VALUES = frozenset(("0", "f", "false"))


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as "300ms", "5s" or "1h10m30s".

    Follows the syntax accepted by Go's time.ParseDuration, which is what
    the flag values of the API server have always been written in.
    """
    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta()
    if not text:
        raise ValueError(f"invalid duration {value!r}")

    result = timedelta()
    pos = 0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {value!r}")
        number, unit = match.groups()
        try:
            result += float(number) * _DURATION_UNITS[unit]
        except OverflowError:
            raise ValueError(f"invalid duration {value!r}") from None
        pos = match.end()
    return sign * result


def _format_fraction(whole: int, fraction: int, digits: int) -> str:
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction:0{digits}d}".rstrip("0")


def format_duration(value: timedelta) -> str:
    """Format like Go's Duration.String: "1h0m1s", "500ms", "1µs"."""
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_format_fraction(*divmod(micros, 1000), 3)}ms"

    seconds, fraction = divmod(micros, 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    result = _format_fraction(seconds, fraction, 6) + "s"
    if hours or minutes:
        result = f"{minutes}m" + result
    if hours:
        result = f"{hours}h" + result
    return sign + result


def parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {value!r}")
