"""Canonical JSON rendering and message hashing used by ssb feeds."""

from __future__ import annotations

import hashlib
import json
import math
from decimal import Decimal
from typing import Any

from .errors import InvalidJsonError

_INDENT = "  "
_MIN_INT = -(2**63)
_MAX_INT = 2**64


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _format_float(number: float) -> str:
    if not math.isfinite(number):
        raise InvalidJsonError(f"cannot encode non-finite number {number!r}")
    if number == 0:
        return "-0.0" if math.copysign(1.0, number) < 0 else "0.0"
    sign = "-" if number < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(number))).as_tuple()
    all_digits = "".join(map(str, digit_tuple))
    digits = all_digits.rstrip("0")
    exponent += len(all_digits) - len(digits)
    length = len(digits)
    point = length + exponent  # 10^(point-1) <= |number| < 10^point

    if 0 <= exponent and point <= 16:
        body = digits + "0" * exponent + ".0"
    elif 0 < point <= 16:
        body = digits[:point] + "." + digits[point:]
    elif -5 < point <= 0:
        body = "0." + "0" * -point + digits
    elif length == 1:
        body = f"{digits}e{point - 1}"
    else:
        body = f"{digits[0]}.{digits[1:]}e{point - 1}"
    return sign + body


def _format_number(value: int | float) -> str:
    if isinstance(value, int):
        if _MIN_INT <= value < _MAX_INT:
            text = str(value)
        else:
            try:
                text = _format_float(float(value))
            except OverflowError as err:
                raise InvalidJsonError("number out of range") from err
    else:
        text = _format_float(value)
    if "e" in text and "e-" not in text and "e+" not in text:
        text = text.replace("e", "e+")
    return text


def _render(value: Any, level: int) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, (int, float)):
        return _format_number(value)

    inner = _INDENT * (level + 1)
    outer = _INDENT * level
    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidJsonError(f"object key {key!r} is not a string")
            entries.append(f"{inner}{_quote(key)}: {_render(item, level + 1)}")
        return "{\n" + ",\n".join(entries) + "\n" + outer + "}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        entries = [inner + _render(item, level + 1) for item in value]
        return "[\n" + ",\n".join(entries) + "\n" + outer + "]"
    raise InvalidJsonError(f"cannot encode {type(value).__name__}")


def stringify_json(value: Any) -> str:
    """Render a JSON value the way ``JSON.stringify(v, null, 2)`` does."""
    return _render(value, 0)


def ssb_sha256(value: Any) -> bytes:
    """Hash a JSON value: low byte of each UTF-16 unit of its canonical text."""
    latin = stringify_json(value).encode("utf-16-le")[::2]
    return hashlib.sha256(latin).digest()