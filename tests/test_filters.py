"""Tests for finding retrieval mode selection and filter building."""

import pytest

from veracode_tools.agent.tools.findings import GetFindingsArgs
from veracode_tools.core.filters import (
    OperationMode,
    build_filters,
    format_pagination_info,
    select_mode,
)


def _args(**kwargs):
    return GetFindingsArgs(app_profile="MyApp", **kwargs)


def test_no_filters_selects_basic_overview():
    selection = select_mode(_args())
    assert selection.mode is OperationMode.BASIC_OVERVIEW
    assert selection.filters == {}


@pytest.mark.parametrize(
    "field_args",
    [
        {"scan_type": "STATIC"},
        {"severity": ["High"]},
        {"status": ["OPEN"]},
        {"cwe_ids": [79]},
        {"page": 0},
        {"size": 50},
    ],
)
def test_any_filter_field_selects_filtered(field_args):
    assert select_mode(_args(**field_args)).mode is OperationMode.FILTERED


def test_empty_lists_do_not_count_as_filters():
    selection = select_mode(_args(severity=[], cwe_ids=[]))
    assert selection.mode is OperationMode.BASIC_OVERVIEW


def test_include_details_alone_keeps_overview():
    assert select_mode(_args(include_details=True)).mode is OperationMode.BASIC_OVERVIEW


def test_unset_fields_are_omitted():
    filters = build_filters(_args(scan_type="SCA"))
    assert filters == {"scan_type": "SCA"}


def test_severity_labels_become_ordinals():
    filters = build_filters(_args(severity=["High", "Very High", "Informational"]))
    assert filters["severity"] == [5, 4, 0]


def test_all_filters_and_sandbox_context():
    filters = build_filters(
        _args(scan_type="STATIC", status=["OPEN", "NEW"], cwe_ids=[89, 79]),
        sandbox_guid="33333333-3333-4333-8333-333333333333",
    )
    assert filters == {
        "scan_type": "STATIC",
        "status": ["OPEN", "NEW"],
        "cwe": [89, 79],
        "context": "33333333-3333-4333-8333-333333333333",
    }


def test_overview_keeps_sandbox_qualifier():
    selection = select_mode(_args(), sandbox_guid="33333333-3333-4333-8333-333333333333")
    assert selection.mode is OperationMode.BASIC_OVERVIEW
    assert selection.filters == {"context": "33333333-3333-4333-8333-333333333333"}


def test_pagination_info_middle_page():
    info = format_pagination_info(page=1, size=100, total_elements=250)
    assert info["total_pages"] == 3
    assert info["has_next_page"] is True
    assert info["has_previous_page"] is True
    assert info["is_first_page"] is False
    assert info["is_last_page"] is False


def test_pagination_info_last_page():
    info = format_pagination_info(page=2, size=100, total_elements=250)
    assert info["has_next_page"] is False
    assert info["is_last_page"] is True
