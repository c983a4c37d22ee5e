"""Unit tests for core.settings: key normalization and the settings cascade."""

import pytest
from pydantic import ValidationError

from sqlint.core.settings import (
    QuerySettings,
    canonical_key,
    configure,
    get_default_query_settings,
    normalize_settings,
    recognized_overrides,
    reset_default_query_settings,
)


class TestCanonicalKey:
    def test_spellings_collapse(self):
        assert canonical_key("rowsIndexed") == "rowsindexed"
        assert canonical_key("rows_indexed") == "rowsindexed"
        assert canonical_key("Rows-Indexed") == "rowsindexed"
        assert canonical_key("ROWS INDEXED") == "rowsindexed"


class TestNormalizeSettings:
    def test_none_returns_base(self):
        base = QuerySettings()
        assert normalize_settings(None, base) is base

    def test_camel_and_snake_keys(self):
        base = QuerySettings()
        out = normalize_settings({"rowsIndexed": True, "omit_single_key": True}, base)
        assert out.rows_indexed is True
        assert out.omit_single_key is True
        assert out.charset == base.charset

    def test_unknown_keys_dropped(self):
        base = QuerySettings()
        assert recognized_overrides({"nope": 1, "CHARSET": "latin1"}) == {"charset": "latin1"}
        assert normalize_settings({"nope": 1}, base) is base

    def test_invalid_value_rejected(self):
        with pytest.raises(ValidationError):
            normalize_settings({"tokens": ("", "%>")}, QuerySettings())

    def test_cascade(self):
        defaults = normalize_settings({"rowsIndexed": False, "charset": "utf8"}, QuerySettings())
        session = normalize_settings({"rowsIndexed": True}, defaults)
        effective = normalize_settings({"charset": "utf16"}, session)
        assert effective.rows_indexed is True
        assert effective.charset == "utf16"

    def test_public_uses_camel_case(self):
        public = QuerySettings().public()
        assert public["maxRowsUsingInsert"] == 1000
        assert public["throwErrors"] is True
        assert public["tokens"] == ("<%", "%>")


class TestProcessDefaults:
    def test_configure_and_reset(self):
        configure({"no_rows_as_array": True, "max-rows-using-insert": 10})
        current = get_default_query_settings()
        assert current.no_rows_as_array is True
        assert current.max_rows_using_insert == 10

        reset_default_query_settings()
        assert get_default_query_settings() == QuerySettings()

    def test_configure_is_cumulative(self):
        configure({"charset": "latin1"})
        configure({"rowsIndexed": True})
        current = get_default_query_settings()
        assert current.charset == "latin1"
        assert current.rows_indexed is True
