"""
Unit tests for parsing record ids out of untrusted text.
"""

import pytest

from workpack.core.base_dao import MAX_ID, parse_id


class TestParseId:
    def test_decimal_ids(self):
        assert parse_id("42") == 42
        assert parse_id(" 7 ") == 7
        assert parse_id(str(MAX_ID)) == MAX_ID

    @pytest.mark.parametrize("raw", ["", "abc", "-1", "1.5", "\N{SUPERSCRIPT TWO}", str(MAX_ID + 1)])
    def test_text_that_cannot_name_a_record(self, raw):
        assert parse_id(raw) is None
