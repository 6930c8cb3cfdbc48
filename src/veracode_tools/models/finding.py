"""Canonical finding record built from the findings API payload.

Every tool works on :class:`Finding`; shaping it for output is the job of
:mod:`veracode_tools.models.views`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ScanType(str, Enum):
    STATIC = "STATIC"
    DYNAMIC = "DYNAMIC"
    SCA = "SCA"
    MANUAL = "MANUAL"


class FindingStatus(str, Enum):
    NEW = "NEW"
    OPEN = "OPEN"
    FIXED = "FIXED"
    CANNOT_REPRODUCE = "CANNOT_REPRODUCE"
    ACCEPTED = "ACCEPTED"
    FALSE_POSITIVE = "FALSE_POSITIVE"
    MITIGATED = "MITIGATED"


SEVERITY_LABELS: dict[int, str] = {
    5: "Very High",
    4: "High",
    3: "Medium",
    2: "Low",
    1: "Very Low",
    0: "Informational",
}
UNKNOWN_SEVERITY = "Unknown"


def severity_label(value: Any) -> str:
    """Map a numeric severity to its label; anything unmapped is ``Unknown``."""
    if isinstance(value, bool):
        return UNKNOWN_SEVERITY
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if isinstance(value, int):
        return SEVERITY_LABELS.get(value, UNKNOWN_SEVERITY)
    return UNKNOWN_SEVERITY


def severity_from_label(label: str) -> Optional[int]:
    for value, name in SEVERITY_LABELS.items():
        if name.lower() == label.strip().lower():
            return value
    return None


@dataclass(frozen=True)
class License:
    license_id: str
    risk_rating: Optional[int] = None


@dataclass(frozen=True)
class Vulnerability:
    """CVE data attached to an SCA finding."""

    cve: Optional[str] = None
    cvss: Optional[float] = None
    cvss3: Optional[float] = None
    severity: Optional[str] = None
    exploit_observed: bool = False
    epss_score: Optional[float] = None

    @classmethod
    def from_api(cls, raw: dict) -> "Vulnerability":
        exploitability = raw.get("exploitability") or {}
        cvss3 = raw.get("cvss3") or {}
        return cls(
            cve=raw.get("name"),
            cvss=_to_float(raw.get("cvss")),
            cvss3=_to_float(cvss3.get("score")),
            severity=raw.get("severity"),
            exploit_observed=exploitability.get("exploit_observed") is True,
            epss_score=_to_float(exploitability.get("epss_score")),
        )


@dataclass(frozen=True)
class Finding:
    issue_id: Optional[int]
    scan_type: Optional[str]
    description: str = ""
    severity: Optional[int] = None
    status: Optional[str] = None
    resolution: Optional[str] = None
    resolution_status: Optional[str] = None
    mitigation_review_status: Optional[str] = None
    is_new: bool = False
    violates_policy: bool = False
    count: int = 1
    context_type: Optional[str] = None
    context_guid: Optional[str] = None
    first_found_date: Optional[str] = None
    last_seen_date: Optional[str] = None
    cwe_id: Optional[int] = None
    cwe_name: Optional[str] = None
    # static / dynamic
    file_path: Optional[str] = None
    file_name: Optional[str] = None
    line_number: Optional[int] = None
    module: Optional[str] = None
    procedure: Optional[str] = None
    attack_vector: Optional[str] = None
    exploitability: Optional[int] = None
    finding_category: Optional[str] = None
    url: Optional[str] = None
    vulnerable_parameter: Optional[str] = None
    # sca
    component_id: Optional[str] = None
    component_filename: Optional[str] = None
    component_version: Optional[str] = None
    language: Optional[str] = None
    component_paths: tuple[str, ...] = ()
    licenses: tuple[License, ...] = ()
    dependency_metadata: Optional[str] = None
    vulnerability: Optional[Vulnerability] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, raw: dict) -> "Finding":
        details = raw.get("finding_details") or {}
        status = raw.get("finding_status") or {}
        cwe = details.get("cwe") or {}
        category = details.get("finding_category")
        if isinstance(category, dict):
            category = category.get("name")
        cve = details.get("cve")
        return cls(
            issue_id=raw.get("issue_id"),
            scan_type=raw.get("scan_type"),
            description=raw.get("description") or "",
            severity=_to_int(details.get("severity")),
            status=status.get("status"),
            resolution=status.get("resolution"),
            resolution_status=status.get("resolution_status"),
            mitigation_review_status=status.get("mitigation_review_status"),
            is_new=status.get("new") is True,
            violates_policy=raw.get("violates_policy") is True,
            count=_to_int(raw.get("count")) or 1,
            context_type=raw.get("context_type"),
            context_guid=raw.get("context_guid"),
            first_found_date=status.get("first_found_date"),
            last_seen_date=status.get("last_seen_date"),
            cwe_id=_to_int(cwe.get("id")),
            cwe_name=cwe.get("name"),
            file_path=details.get("file_path"),
            file_name=details.get("file_name"),
            line_number=_to_int(details.get("file_line_number")),
            module=details.get("module"),
            procedure=details.get("procedure"),
            attack_vector=details.get("attack_vector"),
            exploitability=_to_int(details.get("exploitability")),
            finding_category=category,
            url=details.get("URL") or details.get("url"),
            vulnerable_parameter=details.get("vulnerable_parameter"),
            component_id=details.get("component_id"),
            component_filename=details.get("component_filename"),
            component_version=details.get("version"),
            language=details.get("language"),
            component_paths=tuple(
                p.get("path") for p in details.get("component_path") or [] if p.get("path")
            ),
            licenses=tuple(
                License(license_id=lic.get("license_id", ""), risk_rating=_to_int(lic.get("risk_rating")))
                for lic in details.get("licenses") or []
            ),
            dependency_metadata=_metadata_text(details.get("metadata")),
            vulnerability=Vulnerability.from_api(cve) if isinstance(cve, dict) else None,
            raw=raw,
        )

    @property
    def severity_label(self) -> str:
        return severity_label(self.severity)

    @property
    def score(self) -> Optional[float]:
        """Numeric vulnerability score (CVSS) when the finding carries one."""
        if self.vulnerability is None:
            return None
        return self.vulnerability.cvss

    @property
    def is_exploitable(self) -> bool:
        return self.vulnerability is not None and self.vulnerability.exploit_observed

    @property
    def is_high_risk(self) -> bool:
        return self.severity is not None and self.severity >= 4

    @property
    def is_direct_dependency(self) -> bool:
        return bool(self.dependency_metadata) and "DIRECT" in self.dependency_metadata

    @property
    def is_transitive_dependency(self) -> bool:
        return bool(self.dependency_metadata) and "TRANSITIVE" in self.dependency_metadata

    @property
    def has_license_risk(self) -> bool:
        return any(lic.risk_rating is not None and lic.risk_rating > 2 for lic in self.licenses)

    @property
    def is_resolved(self) -> bool:
        return self.status in (FindingStatus.FIXED.value, FindingStatus.MITIGATED.value) or (
            self.resolution_status == "APPROVED"
        )


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _metadata_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, dict):
        return " ".join(str(v) for v in value.values())
    return str(value)
