# flowshape/client/workflows.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from flowshape.client.errors import InvalidResponse, RequestFailed, Unauthorized
from flowshape.utils.logger import get_logger

log = get_logger("client")

WORKFLOWS_PATH = "/api/tui/workflows"
DEFAULT_TIMEOUT = 30.0
WORKFLOW_STATUSES = ("ready", "draft")


@dataclass(frozen=True)
class WorkflowSummary:
    id: str
    name: str
    updated_at: float
    node_count: int
    status: str


def normalize_base_url(base_url: str) -> str:
    """Drop one trailing slash so paths can be appended verbatim."""
    return base_url[:-1] if base_url.endswith("/") else base_url


def workflows_url(base_url: str) -> str:
    return f"{normalize_base_url(base_url)}{WORKFLOWS_PATH}"


def _parse_payload(response: requests.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, str) and err:
            return err
    return None


def _summary_from_dict(raw: Any, index: int) -> WorkflowSummary:
    if not isinstance(raw, dict):
        raise InvalidResponse(f"Invalid API response from {WORKFLOWS_PATH}: workflows[{index}] is not an object")
    try:
        return WorkflowSummary(
            id=str(raw["id"]),
            name=str(raw["name"]),
            updated_at=float(raw["updatedAt"]),
            node_count=int(raw["nodeCount"]),
            status=str(raw["status"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidResponse(
            f"Invalid API response from {WORKFLOWS_PATH}: workflows[{index}] is malformed ({e})"
        ) from e


def fetch_workflows(
    base_url: str,
    token: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[WorkflowSummary]:
    """
    List the user's workflows from the editor frontend.

    Raises:
        Unauthorized     on HTTP 401
        RequestFailed    on any other non-2xx status or a transport error
        InvalidResponse  when a 2xx body is not {"workflows": [...]}
    """
    url = workflows_url(base_url)
    headers: Dict[str, str] = {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
    }
    http = session or requests

    log.debug("GET %s", url)
    try:
        response = http.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise RequestFailed(f"Request to {url} failed: {e}") from e

    payload = _parse_payload(response)

    if response.status_code == 401:
        raise Unauthorized(_error_message(payload))

    if not response.ok:
        message = _error_message(payload) or f"Request failed with status {response.status_code}"
        log.warning("workflow listing failed: %s", message)
        raise RequestFailed(message, status=response.status_code)

    if not isinstance(payload, dict) or not isinstance(payload.get("workflows"), list):
        raise InvalidResponse(f"Invalid API response from {WORKFLOWS_PATH}")

    workflows = [_summary_from_dict(raw, i) for i, raw in enumerate(payload["workflows"])]
    for wf in workflows:
        if wf.status not in WORKFLOW_STATUSES:
            log.debug("workflow %s has unexpected status %r", wf.id, wf.status)
    return workflows
