import pytest

from stxer.clarity import (
    ClarityType,
    bool_cv,
    buffer_cv,
    int_cv,
    list_cv,
    none_cv,
    principal_cv,
    response_err_cv,
    response_ok_cv,
    serialize_cv,
    some_cv,
    string_ascii_cv,
    string_utf8_cv,
    tuple_cv,
    uint_cv,
)


def test_integers():
    assert serialize_cv(uint_cv(1)) == b"\x01" + (1).to_bytes(16, "big")
    assert serialize_cv(int_cv(-1)) == b"\x00" + b"\xff" * 16


def test_integer_ranges():
    with pytest.raises(ValueError):
        uint_cv(-1)
    with pytest.raises(ValueError):
        uint_cv(1 << 128)
    with pytest.raises(ValueError):
        int_cv(1 << 127)


def test_booleans_and_optionals():
    assert serialize_cv(bool_cv(True)) == b"\x03"
    assert serialize_cv(bool_cv(False)) == b"\x04"
    assert serialize_cv(none_cv()) == b"\x09"
    assert serialize_cv(some_cv(bool_cv(True))) == b"\x0a\x03"


def test_responses():
    assert serialize_cv(response_ok_cv(bool_cv(True))) == b"\x07\x03"
    assert serialize_cv(response_err_cv(uint_cv(2)))[:2] == b"\x08\x01"


def test_buffer_and_strings():
    assert serialize_cv(buffer_cv(b"\xde\xad")) == b"\x02\x00\x00\x00\x02\xde\xad"
    assert serialize_cv(string_ascii_cv("hi")) == b"\x0d\x00\x00\x00\x02hi"
    assert serialize_cv(string_utf8_cv("é")) == b"\x0e\x00\x00\x00\x02\xc3\xa9"


def test_string_ascii_rejects_non_ascii():
    with pytest.raises(ValueError):
        serialize_cv(string_ascii_cv("é"))


def test_list():
    data = serialize_cv(list_cv([bool_cv(True), bool_cv(False)]))
    assert data == b"\x0b\x00\x00\x00\x02\x03\x04"


def test_tuple_keys_sorted():
    value = tuple_cv({"type": bool_cv(True), "data": bool_cv(False)})
    assert serialize_cv(value) == (
        b"\x0c\x00\x00\x00\x02" + b"\x04data" + b"\x04" + b"\x04type" + b"\x03"
    )


def test_standard_principal():
    value = principal_cv("SP000000000000000000002Q6VF78")
    assert value.type_id == ClarityType.PRINCIPAL_STANDARD
    assert serialize_cv(value) == b"\x05\x16" + bytes(20)


def test_contract_principal():
    value = principal_cv("SP000000000000000000002Q6VF78.pox")
    assert serialize_cv(value) == b"\x06\x16" + bytes(20) + b"\x03pox"


def test_contract_name_length():
    with pytest.raises(ValueError):
        serialize_cv(principal_cv("SP000000000000000000002Q6VF78." + "a" * 129))
