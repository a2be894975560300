"""
Argument parsing for deploy tasks.

Command line values arrive as strings. Array parameters are comma separated,
and array-typed constructor arguments use semicolons inside a single value.
"""

import re
from typing import Any, Callable, List, Optional, Sequence, Union

from .errors import DeployToolError

ParsedArgument = Union[str, int, bool, List[str], List[int], List[bool]]

_INT_RE = re.compile(r"^(u?int)(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d*)$")
_HEX_RE = re.compile(r"^0x[0-9a-fA-F]*$")
_BOOL_VALUES = {"true": True, "false": False}


class ArgumentValidationError(DeployToolError, ValueError):
    """Raised when a task or constructor argument cannot be parsed."""


class StringArrayArgumentType:
    """Argument type for a string array separated by commas."""

    name = "StringArray"

    @staticmethod
    def parse(arg_name: str, str_value: str) -> List[str]:
        return str_value.split(",")

    @staticmethod
    def validate(arg_name: str, argument_value: Any) -> None:
        if not isinstance(argument_value, list):
            raise ArgumentValidationError(f"Parsed argument {arg_name} is not an array")
        for value in argument_value:
            if not isinstance(value, str):
                raise ArgumentValidationError(
                    f"Parsed argument {arg_name} is an array but does not only contain strings"
                )


class StringArgumentType:
    """Plain string argument."""

    name = "string"

    @staticmethod
    def parse(arg_name: str, str_value: str) -> str:
        return str_value

    @staticmethod
    def validate(arg_name: str, argument_value: Any) -> None:
        if not isinstance(argument_value, str):
            raise ArgumentValidationError(f"Argument {arg_name} must be a string")


def _to_int(value: str, solidity_type: str, signed: bool = False) -> int:
    text = value.strip()
    negative = signed and text.startswith("-")
    if negative:
        text = text[1:]
    try:
        if text[:2].lower() == "0x":
            number = int(text[2:], 16)
        else:
            number = int(text, 10)
    except ValueError:
        raise ArgumentValidationError(f"Invalid {solidity_type} value: {value!r}") from None
    if number < 0:
        raise ArgumentValidationError(f"{solidity_type} cannot be negative: {value!r}")
    return -number if negative else number


def _to_bool(value: str, solidity_type: str) -> bool:
    text = value.strip().lower()
    if text not in _BOOL_VALUES:
        raise ArgumentValidationError(f"Invalid {solidity_type} value: {value!r}")
    return _BOOL_VALUES[text]


def _to_hex(value: str, solidity_type: str, size: Optional[int]) -> str:
    # Already ABI-shaped, passed through unchanged
    text = value.strip()
    if not _HEX_RE.match(text) or len(text) % 2:
        raise ArgumentValidationError(f"Invalid {solidity_type} value: {value!r}")
    if size is not None and len(text) - 2 != size * 2:
        raise ArgumentValidationError(
            f"{solidity_type} needs exactly {size} bytes, got {(len(text) - 2) // 2}"
        )
    return text


def _scalar_parser(solidity_type: str) -> Optional[Callable[[str], Any]]:
    if solidity_type in ("string", "address"):
        return lambda value: value
    if solidity_type == "bool":
        return lambda value: _to_bool(value, solidity_type)

    match = _INT_RE.match(solidity_type)
    if match:
        bits = match.group(2)
        if bits and (int(bits) % 8 or not 8 <= int(bits) <= 256):
            return None
        signed = match.group(1) == "int"
        return lambda value: _to_int(value, solidity_type, signed)

    match = _BYTES_RE.match(solidity_type)
    if match:
        size = int(match.group(1)) if match.group(1) else None
        if size is not None and not 1 <= size <= 32:
            return None
        return lambda value: _to_hex(value, solidity_type, size)
    return None


def parse_argument(value: str, solidity_type: str) -> ParsedArgument:
    """
    Convert a string constructor argument into the value the ABI type needs.

    Elementary types (``string``, ``address``, ``bool``, ``intN``, ``uintN``,
    ``bytes`` and ``bytesN``) are supported, plus one-dimensional arrays of
    them written as a single semicolon separated value. Byte values must be
    0x-prefixed hex and are returned as given.

    Args:
        value: The string value to parse
        solidity_type: The Solidity type to parse the value into

    Returns:
        str, int, bool or a list of those

    Raises:
        ArgumentValidationError: For unknown types or malformed values
    """
    is_array = solidity_type.endswith("[]")
    parser = _scalar_parser(solidity_type[:-2] if is_array else solidity_type)
    if parser is None:
        raise ArgumentValidationError(f"Unknown type: {solidity_type}")
    if is_array:
        return [parser(item) for item in value.split(";")]
    return parser(value)


def parse_constructor_arguments(
    values: Sequence[str], types: Sequence[str]
) -> List[ParsedArgument]:
    """Parse every constructor argument against the deploy parameter types."""
    if len(values) != len(types):
        raise ArgumentValidationError(
            "Arguments and argument types must have the same length. "
            f"Required args: {len(types)}, provided args: {len(values)}"
        )
    return [parse_argument(value, solidity_type) for value, solidity_type in zip(values, types)]
