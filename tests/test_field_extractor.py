"""
tests/test_field_extractor.py

Unit tests for comma-separated field projection.
"""

from __future__ import annotations

import pytest

from app.services.field_extractor import extract_fields, parse_fields_spec, resolve_path


class TestParseFieldsSpec:
    def test_trims_and_drops_empty_names(self) -> None:
        assert parse_fields_spec(" a , b.c,, ") == ["a", "b.c"]

    @pytest.mark.parametrize("spec", [None, "", "   "])
    def test_blank_spec_yields_no_fields(self, spec: str | None) -> None:
        assert parse_fields_spec(spec) == []


class TestExtractFields:
    def test_empty_spec_returns_data_unchanged(self) -> None:
        data = {"a": 1}
        assert extract_fields(data, "") is data

    def test_sequence_is_projected_per_element(self) -> None:
        assert extract_fields([{"a": 1, "b": 2}, {"a": 3, "b": 4}], "a") == [{"a": 1}, {"a": 3}]

    def test_dotted_field_keeps_original_key(self) -> None:
        assert extract_fields({"x": {"y": 5}}, "x.y") == {"x.y": 5}

    def test_missing_intermediate_yields_none(self) -> None:
        assert extract_fields({"x": {}}, "x.y") == {"x.y": None}

    def test_missing_root_yields_none(self) -> None:
        assert extract_fields({"other": 1}, "x.y.z") == {"x.y.z": None}

    def test_multiple_fields_mixed_depth(self) -> None:
        data = {"name": "cpu", "metrics": {"load": 0.7, "temp": 61}}
        assert extract_fields(data, "name, metrics.load") == {"name": "cpu", "metrics.load": 0.7}

    def test_non_mapping_elements_project_to_none(self) -> None:
        assert extract_fields([{"a": 1}, 7], "a") == [{"a": 1}, {"a": None}]

    def test_none_data_is_returned_as_is(self) -> None:
        assert extract_fields(None, "a") is None


class TestResolvePath:
    def test_numeric_segment_indexes_lists(self) -> None:
        assert resolve_path({"items": [{"v": 1}, {"v": 2}]}, "items.1.v") == 2

    def test_out_of_range_index_yields_none(self) -> None:
        assert resolve_path({"items": []}, "items.0.v") is None

    def test_traversal_through_scalar_yields_none(self) -> None:
        assert resolve_path({"a": "text"}, "a.b") is None
