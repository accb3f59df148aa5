import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from smart_prefs.codec import TypedValue, decode, encode, kind_of
from smart_prefs.remote.memory_impl import InMemoryRemotePrefs


def test_encode_classifies_scalars():
    assert encode(True) == TypedValue("bool", "true")
    assert encode(False) == TypedValue("bool", "false")
    assert encode(42) == TypedValue("int", "42")
    assert encode(-10) == TypedValue("int", "-10")
    assert encode(3.14) == TypedValue("double", "3.14")
    assert encode("test") == TypedValue("string", "test")


def test_encode_falls_back_to_string_for_other_values():
    typed = encode(["a", "b"])
    assert typed.data_type == "string"
    assert typed.value == "['a', 'b']"


def test_decode_bool_is_case_insensitive():
    assert decode("true", "bool") is True
    assert decode("TRUE", "bool") is True
    assert decode("False", "bool") is False
    assert decode("yes", "bool") is False


def test_decode_malformed_numbers_become_zero():
    assert decode("not_a_number", "int") == 0
    assert decode("", "int") == 0
    assert decode("1.5", "int") == 0
    assert decode("not_a_number", "double") == 0.0
    assert decode("", "double") == 0.0


def test_decode_rejects_digit_group_underscores():
    assert decode("1_000", "int") == 0
    assert decode("1_0.5", "double") == 0.0
    assert decode(" 1000 ", "int") == 1000
    assert decode("-2.5", "double") == -2.5


def test_decode_unknown_type_returns_string():
    assert decode("anything", "unknown") == "anything"
    assert decode("test", "string") == "test"


def test_round_trip_preserves_supported_scalars():
    for value in (True, False, 0, 123, -7, 3.14, -2.5, 1e-9, "", "hello"):
        typed = encode(value)
        decoded = decode(typed.value, typed.data_type)
        assert decoded == value
        assert type(decoded) is type(value)


def test_typed_value_map_shape():
    typed = TypedValue("int", "42")
    assert typed.to_map() == {"value": "42", "data_type": "int"}
    assert TypedValue.from_map(typed.to_map()) == typed


def test_kind_of_distinguishes_bool_from_int():
    assert kind_of(True) == "bool"
    assert kind_of(1) == "int"
    assert kind_of(1.0) == "double"
    assert kind_of(["x"]) == "string_list"
    assert kind_of([1]) is None
    assert kind_of({"a": 1}) is None


def test_remote_helpers_delegate_to_codec():
    remote = InMemoryRemotePrefs("u1")
    assert remote.to_typed_value(7) == TypedValue("int", "7")
    assert remote.parse_from_string("2.5", "double") == 2.5
