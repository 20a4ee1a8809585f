import pytest

from shared.validators import parse_string_list


class TestParseStringList:
    def test_json_array_string(self):
        assert parse_string_list('["http://a.com","http://b.com"]') == ["http://a.com", "http://b.com"]

    def test_comma_separated_with_whitespace(self):
        assert parse_string_list(" http://a.com , http://b.com ") == ["http://a.com", "http://b.com"]

    def test_comma_separated_skips_blank_items(self):
        assert parse_string_list("http://a.com,,http://b.com,") == ["http://a.com", "http://b.com"]

    def test_list_passes_through(self):
        origins = ["http://a.com"]
        assert parse_string_list(origins) == origins

    @pytest.mark.parametrize("value", ["", "   ", ",", ",,,", "[]", []])
    def test_empty_values_rejected(self, value):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(value)

    def test_malformed_json_rejected(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not json")

    def test_json_non_string_items_rejected(self):
        with pytest.raises(ValueError, match="must be an array of strings"):
            parse_string_list('["http://a.com", 1]')
