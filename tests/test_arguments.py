import re

import pytest

from deploytasks.engines.arguments import (
    ArgumentValidationError,
    StringArrayArgumentType,
    parse_argument,
    parse_constructor_arguments,
)


class TestStringArrayArgumentType:
    def test_parse_splits_on_commas(self):
        assert StringArrayArgumentType.parse("arguments", "a,b,c") == ["a", "b", "c"]

    def test_parse_keeps_semicolons_inside_values(self):
        assert StringArrayArgumentType.parse("arguments", "1;2,x") == ["1;2", "x"]

    def test_validate_accepts_string_list(self):
        StringArrayArgumentType.validate("arguments", ["a", "b"])

    def test_validate_rejects_non_list(self):
        with pytest.raises(ArgumentValidationError, match="not an array"):
            StringArrayArgumentType.validate("arguments", "a,b")

    def test_validate_rejects_non_strings(self):
        with pytest.raises(ArgumentValidationError, match="only contain strings"):
            StringArrayArgumentType.validate("arguments", ["a", 1])


@pytest.mark.parametrize(
    "value, solidity_type, expected",
    [
        ("hello", "string", "hello"),
        ("0xabc", "address", "0xabc"),
        ("a;b", "string[]", ["a", "b"]),
        ("0x1;0x2", "address[]", ["0x1", "0x2"]),
        ("1000000", "uint256", 1000000),
        ("0x10", "uint64", 16),
        ("1;2;3", "uint256[]", [1, 2, 3]),
        ("115792089237316195423570985008687907853269984665640564039457584007913129639935", "uint256", 2**256 - 1),
        ("255", "uint8", 255),
        ("7", "uint", 7),
        ("-12", "int256", -12),
        ("-1;2", "int64[]", [-1, 2]),
        ("true", "bool", True),
        ("False", "bool", False),
        ("true;false", "bool[]", [True, False]),
        ("0x", "bytes", "0x"),
        ("0x8129fc1c", "bytes", "0x8129fc1c"),
        ("0x" + "ab" * 32, "bytes32", "0x" + "ab" * 32),
        ("0x01;0x02", "bytes1[]", ["0x01", "0x02"]),
    ],
)
def test_parse_argument(value, solidity_type, expected):
    assert parse_argument(value, solidity_type) == expected


@pytest.mark.parametrize("solidity_type", ["tuple", "uint7", "uint512", "bytes33", "mapping", "string[2]"])
def test_parse_argument_unknown_type(solidity_type):
    with pytest.raises(ArgumentValidationError, match=re.escape(f"Unknown type: {solidity_type}")):
        parse_argument("1", solidity_type)


@pytest.mark.parametrize(
    "value, solidity_type",
    [
        ("yes", "bool"),
        ("8129fc1c", "bytes"),
        ("0x123", "bytes"),
        ("0xzz", "bytes"),
        ("0xabcd", "bytes4"),
        ("-1", "uint256"),
    ],
)
def test_parse_argument_bad_value(value, solidity_type):
    with pytest.raises(ArgumentValidationError, match="Invalid|negative|exactly"):
        parse_argument(value, solidity_type)


@pytest.mark.parametrize("value", ["abc", "-1", "1.5", ""])
def test_parse_argument_bad_integer(value):
    with pytest.raises(ArgumentValidationError):
        parse_argument(value, "uint256")


def test_parse_constructor_arguments_by_type():
    parsed = parse_constructor_arguments(
        ["Token", "1000", "1;2"], ["string", "uint256", "uint64[]"]
    )
    assert parsed == ["Token", 1000, [1, 2]]


def test_parse_constructor_arguments_length_mismatch():
    with pytest.raises(ArgumentValidationError) as exc_info:
        parse_constructor_arguments(["only one"], ["string", "uint256"])

    assert str(exc_info.value) == (
        "Arguments and argument types must have the same length. "
        "Required args: 2, provided args: 1"
    )
