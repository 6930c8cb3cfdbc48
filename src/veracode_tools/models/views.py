"""Output projections for findings and the records the tools return."""

from typing import Any, Optional

from veracode_tools.models.finding import Finding


def finding_view(finding: Finding, detailed: bool = False) -> dict[str, Any]:
    """Project a finding for an agent. ``detailed`` adds location and lifecycle fields."""
    view: dict[str, Any] = {
        "flaw_id": finding.issue_id,
        "scan_type": finding.scan_type,
        "severity": finding.severity,
        "severity_text": finding.severity_label,
        "cwe_id": finding.cwe_id,
        "cwe_name": finding.cwe_name,
        "status": finding.status,
        "violates_policy": finding.violates_policy,
        "is_new": finding.is_new,
        "description": _truncate(finding.description, None if detailed else 300),
    }

    if finding.file_path or finding.line_number is not None:
        view["file_path"] = finding.file_path
        view["line_number"] = finding.line_number
    if finding.url:
        view["url"] = finding.url
    if finding.component_filename or finding.component_id:
        view["component_filename"] = finding.component_filename
        view["version"] = finding.component_version
    if finding.vulnerability is not None:
        view["cve"] = finding.vulnerability.cve
        view["cvss_score"] = finding.vulnerability.cvss
        view["exploitable"] = finding.vulnerability.exploit_observed

    if detailed:
        view.update(
            {
                "resolution": finding.resolution,
                "resolution_status": finding.resolution_status,
                "mitigation_review_status": finding.mitigation_review_status,
                "first_found_date": finding.first_found_date,
                "last_seen_date": finding.last_seen_date,
                "context_type": finding.context_type,
                "module": finding.module,
                "procedure": finding.procedure,
                "attack_vector": finding.attack_vector,
                "exploitability": finding.exploitability,
                "finding_category": finding.finding_category,
                "vulnerable_parameter": finding.vulnerable_parameter,
                "component_id": finding.component_id,
                "language": finding.language,
                "component_paths": list(finding.component_paths),
                "licenses": [
                    {"license_id": lic.license_id, "risk_rating": lic.risk_rating}
                    for lic in finding.licenses
                ],
                "dependency": finding.dependency_metadata,
            }
        )
    return view


def vulnerability_view(finding: Finding) -> dict[str, Any]:
    """Compact record used in top-vulnerability lists."""
    vuln = finding.vulnerability
    return {
        "flaw_id": finding.issue_id,
        "component": finding.component_filename,
        "version": finding.component_version,
        "cve": vuln.cve if vuln else None,
        "cvss": vuln.cvss if vuln else None,
        "severity": finding.severity_label,
        "exploitable": finding.is_exploitable,
    }


def application_view(app: dict, detailed: bool = False) -> dict[str, Any]:
    profile = app.get("profile") or {}
    view = {
        "guid": app.get("guid"),
        "id": app.get("id"),
        "name": profile.get("name"),
        "business_criticality": profile.get("business_criticality"),
        "policy_compliance": _default_policy_status(profile.get("policies") or []),
        "last_completed_scan_date": app.get("last_completed_scan_date"),
        "app_profile_url": app.get("app_profile_url"),
        "results_url": app.get("results_url"),
    }
    if detailed:
        view.update(
            {
                "description": profile.get("description"),
                "tags": profile.get("tags"),
                "business_unit": (profile.get("business_unit") or {}).get("name"),
                "business_owners": profile.get("business_owners") or [],
                "teams": [t.get("team_name") for t in profile.get("teams") or []],
                "policies": [
                    {
                        "guid": p.get("guid"),
                        "name": p.get("name"),
                        "is_default": p.get("is_default", False),
                        "policy_compliance_status": p.get("policy_compliance_status"),
                    }
                    for p in profile.get("policies") or []
                ],
                "settings": profile.get("settings") or {},
                "scans": [scan_view(s) for s in app.get("scans") or []],
                "created": app.get("created"),
                "modified": app.get("modified"),
            }
        )
    return view


def sandbox_view(sandbox: dict) -> dict[str, Any]:
    return {
        "guid": sandbox.get("guid"),
        "id": sandbox.get("id"),
        "name": sandbox.get("name"),
        "owner": sandbox.get("owner_username"),
        "auto_recreate": sandbox.get("auto_recreate", False),
        "created": sandbox.get("created"),
        "modified": sandbox.get("modified"),
        "custom_fields": sandbox.get("custom_fields") or [],
    }


def scan_view(scan: dict) -> dict[str, Any]:
    return {
        "scan_id": scan.get("scan_id"),
        "scan_type": scan.get("scan_type"),
        "status": scan.get("status"),
        "created_date": scan.get("created_date"),
        "modified_date": scan.get("modified_date"),
        "policy_compliance_status": scan.get("policy_compliance_status"),
        "scan_url": scan.get("scan_url"),
    }


def _default_policy_status(policies: list[dict]) -> Optional[str]:
    if not policies:
        return None
    primary = next((p for p in policies if p.get("is_default")), policies[0])
    return primary.get("policy_compliance_status")


def _truncate(text: str, limit: Optional[int]) -> str:
    if limit is None or len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
