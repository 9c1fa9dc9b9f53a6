"""
Typed environment variable helpers.

Each getter reads a variable, applies required-ness and an optional default,
then parses the resulting string:

```python
from realtime.config.env import getenv, getenv_bool, getenv_string, must_getenv

api_key = must_getenv(getenv_string, "OPENAI_API_KEY", required=True)
debug = getenv(getenv_bool, "DEBUG", default="false")
```

An unset variable and one set to the empty string are both treated as
missing. Numeric and boolean getters fail on a missing optional variable
that has no default, since the empty string does not parse.
"""

import logging
import os
import sys
from typing import Callable, Optional, TypeVar

from realtime.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")

EnvGetter = Callable[..., T]

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1
UINT32_MAX = 2**32 - 1
UINT64_MAX = 2**64 - 1


class EnvError(ValueError):
    """Raised when an environment variable is missing or cannot be parsed."""


def _lookup(key: str, required: bool, default: Optional[str]) -> str:
    value = os.getenv(key, "")
    if value == "":
        if required:
            raise EnvError(f"environment variable {key} is required")
        if default is not None:
            value = default
    return value


def _parse(key: str, value: str, parse: Callable[[str], T]) -> T:
    try:
        return parse(value)
    except ValueError as e:
        raise EnvError(f"invalid value for {key}: {value!r} ({e})") from e


def _parse_bool(value: str) -> bool:
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value: {value}")


def _int_parser(lower: Optional[int], upper: Optional[int]) -> Callable[[str], int]:
    signed = lower is None or lower < 0

    def parse(value: str) -> int:
        # int() accepts underscores, whitespace and non-ASCII digits; plain ASCII digits only
        digits = value[1:] if signed and value[:1] in ("+", "-") else value
        if not (digits.isascii() and digits.isdigit()):
            raise ValueError(f"invalid integer value: {value}")
        number = int(value)
        if (lower is not None and number < lower) or (upper is not None and number > upper):
            raise ValueError(f"value out of range: {value}")
        return number

    return parse


def getenv_string(key: str, required: bool = False, default: Optional[str] = None) -> str:
    return _lookup(key, required, default)


def getenv_bool(key: str, required: bool = False, default: Optional[str] = None) -> bool:
    return _parse(key, _lookup(key, required, default), _parse_bool)


def getenv_int(key: str, required: bool = False, default: Optional[str] = None) -> int:
    return _parse(key, _lookup(key, required, default), _int_parser(INT64_MIN, INT64_MAX))


def getenv_int32(key: str, required: bool = False, default: Optional[str] = None) -> int:
    return _parse(key, _lookup(key, required, default), _int_parser(INT32_MIN, INT32_MAX))


def getenv_int64(key: str, required: bool = False, default: Optional[str] = None) -> int:
    return _parse(key, _lookup(key, required, default), _int_parser(INT64_MIN, INT64_MAX))


def getenv_uint(key: str, required: bool = False, default: Optional[str] = None) -> int:
    return _parse(key, _lookup(key, required, default), _int_parser(0, UINT64_MAX))


def getenv_uint32(key: str, required: bool = False, default: Optional[str] = None) -> int:
    return _parse(key, _lookup(key, required, default), _int_parser(0, UINT32_MAX))


def getenv_uint64(key: str, required: bool = False, default: Optional[str] = None) -> int:
    return _parse(key, _lookup(key, required, default), _int_parser(0, UINT64_MAX))


def getenv_float(key: str, required: bool = False, default: Optional[str] = None) -> float:
    return _parse(key, _lookup(key, required, default), float)


def getenv(
    getter: EnvGetter[T],
    key: str,
    required: bool = False,
    default: Optional[str] = None,
) -> T:
    """
    Read and parse an environment variable with the given getter.

    Args:
        getter: One of the getenv_* functions
        key: Variable name
        required: Whether a missing variable is an error
        default: String value used when the variable is missing and not required

    Returns:
        The parsed value

    Raises:
        EnvError: If the variable is missing and required, or fails to parse
    """
    try:
        return getter(key, required, default)
    except EnvError as e:
        raise EnvError(f"failed to get env: {e}") from e


def must_getenv(
    getter: EnvGetter[T],
    key: str,
    required: bool = False,
    default: Optional[str] = None,
) -> T:
    """Like getenv, but log the error and exit with status 1 on failure."""
    try:
        return getenv(getter, key, required, default)
    except EnvError as e:
        logger.critical(str(e))
        sys.exit(1)
