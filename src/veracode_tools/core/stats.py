"""Summaries and risk classification over finding collections."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from veracode_tools.models.finding import Finding, severity_label


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.value]


@dataclass
class FindingStats:
    total: int = 0
    by_severity: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)
    by_scan_type: dict[str, int] = field(default_factory=dict)
    by_cwe: dict[str, int] = field(default_factory=dict)
    exploitable: int = 0
    policy_violations: int = 0
    high_risk: int = 0
    new: int = 0
    unresolved: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_severity": self.by_severity,
            "by_status": self.by_status,
            "by_scan_type": self.by_scan_type,
            "by_cwe": self.by_cwe,
            "exploitable": self.exploitable,
            "policy_violations": self.policy_violations,
            "high_risk": self.high_risk,
            "new": self.new,
            "unresolved": self.unresolved,
        }


def summarize(findings: Iterable[Finding]) -> FindingStats:
    """Count findings along every axis the tools report on.

    Each finding lands in exactly one severity bucket, so the severity
    histogram always sums to ``total``.
    """
    by_severity: Counter = Counter()
    by_status: Counter = Counter()
    by_scan_type: Counter = Counter()
    by_cwe: Counter = Counter()
    stats = FindingStats()

    for finding in findings:
        stats.total += 1
        by_severity[severity_label(finding.severity)] += 1
        by_status[finding.status or "UNKNOWN"] += 1
        by_scan_type[finding.scan_type or "UNKNOWN"] += 1
        if finding.cwe_id is not None:
            by_cwe[f"CWE-{finding.cwe_id}"] += 1
        if finding.is_exploitable:
            stats.exploitable += 1
        if finding.violates_policy:
            stats.policy_violations += 1
        if finding.is_high_risk:
            stats.high_risk += 1
        if finding.is_new:
            stats.new += 1
        if not finding.is_resolved:
            stats.unresolved += 1

    stats.by_severity = dict(by_severity)
    stats.by_status = dict(by_status)
    stats.by_scan_type = dict(by_scan_type)
    stats.by_cwe = dict(by_cwe.most_common())
    return stats


def top_vulnerabilities(findings: Iterable[Finding], n: int) -> list[Finding]:
    """The ``n`` highest-scoring findings; ties keep input order."""
    scored = [f for f in findings if f.score is not None]
    return sorted(scored, key=lambda f: f.score, reverse=True)[:n]


def classify_risk(exploitable: int, high_risk: int, threshold: int = 5) -> RiskLevel:
    if exploitable > 0:
        return RiskLevel.HIGH
    if high_risk > threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


@dataclass
class ComponentStats:
    components: int = 0
    direct: int = 0
    transitive: int = 0
    licensing_issues: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_components": self.components,
            "direct_dependencies": self.direct,
            "transitive_dependencies": self.transitive,
            "licensing_issues": self.licensing_issues,
        }


def component_stats(findings: Iterable[Finding]) -> ComponentStats:
    component_ids = set()
    stats = ComponentStats()
    for finding in findings:
        if finding.component_id:
            component_ids.add(finding.component_id)
        if finding.is_direct_dependency:
            stats.direct += 1
        if finding.is_transitive_dependency:
            stats.transitive += 1
        if finding.has_license_risk:
            stats.licensing_issues += 1
    stats.components = len(component_ids)
    return stats


def score_bands(findings: Iterable[Finding]) -> dict[str, int]:
    """Critical (>= 9.0), high (7.0-9.0) and medium (4.0-7.0) score counts."""
    bands = {"critical": 0, "high": 0, "medium": 0}
    for finding in findings:
        score = finding.score
        if score is None:
            continue
        if score >= 9.0:
            bands["critical"] += 1
        elif score >= 7.0:
            bands["high"] += 1
        elif score >= 4.0:
            bands["medium"] += 1
    return bands
