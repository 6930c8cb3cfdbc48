"""Tests for summary statistics and risk classification."""

import pytest

from veracode_tools.core.stats import (
    RiskLevel,
    classify_risk,
    component_stats,
    score_bands,
    summarize,
    top_vulnerabilities,
)
from veracode_tools.models.finding import Finding, severity_label

from conftest import raw_finding


def _findings(raws):
    return [Finding.from_api(r) for r in raws]


def test_severity_histogram_with_unknown_bucket():
    findings = _findings([raw_finding(i, severity=s) for i, s in enumerate([5, 5, 3, 0, None], start=1)])
    stats = summarize(findings)
    assert stats.by_severity == {"Very High": 2, "Medium": 1, "Informational": 1, "Unknown": 1}
    assert sum(stats.by_severity.values()) == stats.total == 5


@pytest.mark.parametrize(
    "value,label",
    [(5, "Very High"), (4, "High"), (3, "Medium"), (2, "Low"), (1, "Very Low"),
     (0, "Informational"), (None, "Unknown"), (9, "Unknown"), ("4", "High"), (True, "Unknown")],
)
def test_severity_label(value, label):
    assert severity_label(value) == label


def test_summarize_counts(portfolio_findings):
    stats = summarize(_findings(portfolio_findings))
    assert stats.total == 7
    assert stats.exploitable == 1
    assert stats.policy_violations == 2
    assert stats.high_risk == 3
    assert stats.new == 1
    assert stats.unresolved == 6
    assert stats.by_scan_type == {"STATIC": 4, "SCA": 3}
    assert stats.by_cwe["CWE-79"] == 2
    assert list(stats.by_cwe)[0] == "CWE-79"


def test_summarize_empty():
    stats = summarize([])
    assert stats.total == 0
    assert stats.by_severity == {}


def test_top_vulnerabilities_sorted_and_stable():
    findings = _findings(
        [
            raw_finding(1, cvss=5.0),
            raw_finding(2, cvss=9.8),
            raw_finding(3),
            raw_finding(4, cvss=5.0),
            raw_finding(5, cvss=7.2),
        ]
    )
    top = top_vulnerabilities(findings, 10)
    assert [f.issue_id for f in top] == [2, 5, 1, 4]
    assert [f.issue_id for f in top_vulnerabilities(findings, 2)] == [2, 5]


@pytest.mark.parametrize(
    "exploitable,high_risk,expected",
    [(1, 0, RiskLevel.HIGH), (0, 6, RiskLevel.MEDIUM), (0, 5, RiskLevel.LOW), (0, 0, RiskLevel.LOW),
     (3, 20, RiskLevel.HIGH)],
)
def test_classify_risk(exploitable, high_risk, expected):
    assert classify_risk(exploitable, high_risk) is expected


def test_classify_risk_custom_threshold():
    assert classify_risk(0, 2, threshold=1) is RiskLevel.MEDIUM


def test_component_stats(portfolio_findings):
    stats = component_stats(_findings(portfolio_findings))
    assert stats.components == 2
    assert stats.direct == 1
    assert stats.transitive == 2
    assert stats.licensing_issues == 1


def test_score_bands():
    findings = _findings([raw_finding(1, cvss=9.0), raw_finding(2, cvss=8.9), raw_finding(3, cvss=4.0),
                          raw_finding(4, cvss=3.9), raw_finding(5)])
    assert score_bands(findings) == {"critical": 1, "high": 1, "medium": 1}
