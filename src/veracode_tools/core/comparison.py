from dataclasses import dataclass
from typing import Any, Iterable

GOOD_COVERAGE = "Good coverage - scans exist in both policy and sandbox contexts"
LIMITED_COVERAGE = "Limited coverage - consider running similar scan types across environments"


@dataclass(frozen=True)
class ScanContext:
    """Scan types seen in one context (the policy or a single sandbox)."""

    label: str
    types: frozenset
    scan_count: int = 0

    @classmethod
    def from_scans(cls, label: str, scans: Iterable[dict]) -> "ScanContext":
        scans = list(scans)
        return cls(
            label=label,
            types=frozenset(s["scan_type"] for s in scans if s.get("scan_type")),
            scan_count=len(scans),
        )


@dataclass(frozen=True)
class CoverageComparison:
    common_types: frozenset
    policy_only_types: frozenset
    sandbox_only_types: frozenset
    sandbox_only_by_context: dict
    total_policy_scans: int
    total_sandbox_scans: int

    @property
    def total_scans(self) -> int:
        return self.total_policy_scans + self.total_sandbox_scans

    @property
    def has_good_coverage(self) -> bool:
        return bool(self.common_types)

    @property
    def coverage_assessment(self) -> str:
        return GOOD_COVERAGE if self.has_good_coverage else LIMITED_COVERAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "common_scan_types": sorted(self.common_types),
            "policy_only_scan_types": sorted(self.policy_only_types),
            "sandbox_only_scan_types": sorted(self.sandbox_only_types),
            "sandbox_only_by_sandbox": {
                label: sorted(types) for label, types in self.sandbox_only_by_context.items()
            },
            "totals": {
                "policy_scans": self.total_policy_scans,
                "sandbox_scans": self.total_sandbox_scans,
                "total_scans": self.total_scans,
            },
            "coverage_assessment": self.coverage_assessment,
        }


def compare(policy: ScanContext, sandboxes: Iterable[ScanContext]) -> CoverageComparison:
    """Compare scan-type coverage of the policy context against all sandboxes."""
    sandboxes = list(sandboxes)
    sandbox_union: frozenset = frozenset().union(*(s.types for s in sandboxes))
    return CoverageComparison(
        common_types=policy.types & sandbox_union,
        policy_only_types=policy.types - sandbox_union,
        sandbox_only_types=sandbox_union - policy.types,
        sandbox_only_by_context={s.label: s.types - policy.types for s in sandboxes},
        total_policy_scans=policy.scan_count,
        total_sandbox_scans=sum(s.scan_count for s in sandboxes),
    )
