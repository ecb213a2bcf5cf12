"""Live SCIM Groups checks against a running deployment.

Creates a throwaway ``verifier-*`` group, reads, renames, lists and deletes it,
recording status and latency for each step.
"""
from __future__ import annotations
import secrets
import time
import uuid
from dataclasses import dataclass, field

import requests

REQUEST_TIMEOUT = 10
SCIM_CONTENT_TYPE = "application/scim+json"
SCIM_GROUP_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Group"
SCIM_PATCH_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:PatchOp"


@dataclass
class CheckResult:
    name: str
    status: int
    expected: int
    duration_ms: int

    @property
    def ok(self) -> bool:
        return self.status == self.expected


@dataclass
class VerificationReport:
    results: list[CheckResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.results) and all(r.ok for r in self.results)


def _make_scim_request(method: str, url: str, token: str, **kwargs) -> tuple[requests.Response, int]:
    """Make SCIM request with timeout and correlation tracking."""
    headers = kwargs.pop("headers", {})
    headers["Authorization"] = f"Bearer {token}"
    headers["X-Correlation-Id"] = str(uuid.uuid4())
    if "json" in kwargs:
        headers["Content-Type"] = SCIM_CONTENT_TYPE

    start_time = time.time()
    try:
        response = requests.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
    except requests.Timeout:
        response = requests.Response()
        response.status_code = 408
        response._content = b'{"detail": "Request timeout"}'
    return response, int((time.time() - start_time) * 1000)


class ScimVerificationRunner:
    """Run the group lifecycle against ``{base_url}/v2/{organization_id}/groups``."""

    def __init__(self, base_url: str, organization_id: str, token: str):
        self.groups_url = f"{base_url.rstrip('/')}/v2/{organization_id}/groups"
        self.token = token

    def _check(self, report: VerificationReport, name: str, expected: int, method: str, url: str, **kwargs):
        response, duration_ms = _make_scim_request(method, url, self.token, **kwargs)
        report.results.append(CheckResult(name, response.status_code, expected, duration_ms))
        return response

    def run(self) -> VerificationReport:
        report = VerificationReport()
        display_name = f"verifier-{secrets.token_hex(4)}"

        created = self._check(
            report, "create", 201, "POST", self.groups_url,
            json={"schemas": [SCIM_GROUP_SCHEMA], "displayName": display_name},
        )
        if created.status_code != 201:
            return report

        group_id = created.json().get("id")
        group_url = f"{self.groups_url}/{group_id}"

        self._check(report, "get", 200, "GET", group_url)
        self._check(
            report, "rename", 204, "PATCH", group_url,
            json={
                "schemas": [SCIM_PATCH_SCHEMA],
                "Operations": [{"op": "replace", "path": "displayName", "value": f"{display_name}-renamed"}],
            },
        )
        self._check(
            report, "filter", 200, "GET", self.groups_url,
            params={"filter": f'displayName eq "{display_name}-renamed"'},
        )
        self._check(report, "delete", 204, "DELETE", group_url)
        self._check(report, "get-deleted", 404, "GET", group_url)
        return report
