import pytest

from perps_indexer.app.domain.errors import DecodeError
from perps_indexer.app.infrastructure.decoders.positional import (
    Field,
    LengthPrefixed,
    Skip,
    code_int,
    dec_int,
    enum_code,
    flag,
    hex_int,
    read_fields,
)


class TestCoercions:
    def test_hex_int_accepts_prefixed_and_bare(self):
        assert hex_int("0x1f") == 31
        assert hex_int("1f") == 31

    def test_dec_int_rejects_hex(self):
        with pytest.raises(ValueError):
            dec_int("0x10")

    def test_code_int_accepts_both_bases(self):
        assert code_int("0x7") == 7
        assert code_int("11") == 11

    def test_code_int_rejects_negative(self):
        with pytest.raises(ValueError):
            code_int("-1")

    def test_flag_is_exact_match(self):
        is_true = flag("0x1")
        assert is_true("0x1") is True
        assert is_true("1") is False
        assert is_true("0x01") is False

    def test_enum_code_unmapped(self):
        coerce = enum_code({1: "one"})
        assert coerce("0x1") == "one"
        with pytest.raises(KeyError):
            coerce("2")


class TestReadFields:
    def test_reads_in_order(self):
        layout = (Field("a"), Field("b", dec_int), Field("c", hex_int))
        assert read_fields(["x", "12", "0xff"], layout) == {"a": "x", "b": 12, "c": 255}

    def test_short_payload_gives_none(self):
        layout = (Field("a"), Field("b"), Field("c"))
        assert read_fields(["x"], layout) == {"a": "x", "b": None, "c": None}

    def test_empty_payload(self):
        assert read_fields([], (Field("a"),)) == {"a": None}

    def test_optional_bad_value_is_none(self):
        assert read_fields(["zz"], (Field("n", dec_int),)) == {"n": None}

    def test_required_missing_raises(self):
        with pytest.raises(DecodeError) as exc_info:
            read_fields(["x"], (Field("a"), Field("b", required=True)))
        assert exc_info.value.field == "b"

    def test_required_bad_value_raises(self):
        with pytest.raises(DecodeError) as exc_info:
            read_fields(["nope"], (Field("n", dec_int, required=True),))
        assert exc_info.value.field == "n"

    def test_skip_and_width_move_the_offset(self):
        layout = (Field("a"), Skip(1), Field("wide", hex_int, width=2), Field("b"))
        out = read_fields(["a", "skipped", "0x10", "0x0", "b"], layout)
        assert out == {"a": "a", "wide": 16, "b": "b"}


class TestLengthPrefixed:
    LAYOUT = (Field("head"), LengthPrefixed("path"), Field("tail"))

    def test_empty_array(self):
        assert read_fields(["h", "0", "t"], self.LAYOUT) == {"head": "h", "path": (), "tail": "t"}

    def test_items_shift_later_fields(self):
        out = read_fields(["h", "0x2", "p1", "p2", "t"], self.LAYOUT)
        assert out == {"head": "h", "path": ("p1", "p2"), "tail": "t"}

    def test_missing_length_word(self):
        assert read_fields(["h"], self.LAYOUT) == {"head": "h", "path": (), "tail": None}

    def test_declared_length_past_payload_end(self):
        out = read_fields(["h", "3", "p1"], self.LAYOUT)
        assert out == {"head": "h", "path": ("p1",), "tail": None}

    def test_bad_length_word_consumes_one_slot(self):
        out = read_fields(["h", "xx", "t"], self.LAYOUT)
        assert out == {"head": "h", "path": (), "tail": "t"}

    def test_required_bad_item_raises(self):
        layout = (LengthPrefixed("path", item=dec_int, required=True),)
        with pytest.raises(DecodeError):
            read_fields(["1", "nope"], layout)
