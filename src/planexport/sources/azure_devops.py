from __future__ import annotations

import base64
import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any

from .. import __version__
from ..errors import FetchError
from ..models import WorkItem
from ..util import env_value
from .base import parse_work_items, unwrap_value_list


API_VERSION = "7.0"
BATCH_LIMIT = 200


class NonJsonBody(str):
    """Response text that could not be decoded as JSON."""


def _http_json(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    body: Any | None = None,
    timeout: float = 30.0,
) -> tuple[int, Any]:
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = urllib.request.Request(url, data=data, method=method)
    req.add_header("Content-Type", "application/json")
    req.add_header("Accept", "application/json")
    req.add_header("User-Agent", f"planexport/{__version__}")
    if headers:
        for k, v in headers.items():
            req.add_header(k, v)

    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = resp.status
            raw = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace")
        try:
            payload = json.loads(raw) if raw.strip() else None
        except json.JSONDecodeError:
            payload = raw
        return e.code, payload
    except urllib.error.URLError as e:
        return 0, {"message": str(e.reason)}
    except OSError as e:
        return 0, {"message": str(e)}

    try:
        return status, json.loads(raw) if raw.strip() else None
    except json.JSONDecodeError:
        return status, NonJsonBody(raw)


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()[:200]
    return "no details"


def _chunks(ids: list[int], size: int) -> list[list[int]]:
    return [ids[start : start + size] for start in range(0, len(ids), size)]


@dataclass
class AzureDevOpsClient:
    org_url: str
    project: str
    token: str
    wiql: str | None = None
    timeout: float = 30.0

    @classmethod
    def from_env(cls, *, wiql: str | None = None) -> "AzureDevOpsClient":
        org_url = env_value("PLANEXPORT_ORG_URL")
        project = env_value("PLANEXPORT_PROJECT")
        token = env_value("PLANEXPORT_PAT")
        missing = [
            name
            for name, value in (
                ("PLANEXPORT_ORG_URL", org_url),
                ("PLANEXPORT_PROJECT", project),
                ("PLANEXPORT_PAT", token),
            )
            if not value
        ]
        if missing:
            raise FetchError(f"missing environment variable(s): {', '.join(missing)}")
        return cls(org_url=org_url, project=project, token=token, wiql=wiql)

    def _url(self, path: str) -> str:
        base = self.org_url.rstrip("/")
        project = urllib.parse.quote(self.project, safe="")
        return f"{base}/{project}/_apis/{path}?api-version={API_VERSION}"

    def _headers(self) -> dict[str, str]:
        encoded = base64.b64encode(f":{self.token}".encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        status, payload = _http_json(
            "POST",
            self._url(path),
            headers=self._headers(),
            body=body,
            timeout=self.timeout,
        )
        if status < 200 or status >= 300:
            raise FetchError(
                f"{path} failed (HTTP {status}): {_error_message(payload)}",
                status=status,
            )
        # A rejected token is answered with 203 and an HTML sign-in page.
        if status == 203 or isinstance(payload, NonJsonBody):
            raise FetchError(
                f"{path} returned a non-JSON response (HTTP {status}); "
                "check PLANEXPORT_PAT",
                status=status,
            )
        return payload

    def query_ids(self, wiql: str) -> list[int]:
        payload = self._post("wit/wiql", {"query": wiql})
        if not isinstance(payload, dict):
            raise FetchError("wit/wiql returned an unexpected payload")

        ids: list[int] = []
        for row in payload.get("workItems") or ():
            if isinstance(row, dict) and isinstance(row.get("id"), int):
                ids.append(row["id"])
        # Link queries report their rows as source/target pairs.
        for row in payload.get("workItemRelations") or ():
            if not isinstance(row, dict):
                continue
            for end in ("source", "target"):
                ref = row.get(end)
                if isinstance(ref, dict) and isinstance(ref.get("id"), int):
                    ids.append(ref["id"])
        return list(dict.fromkeys(ids))

    def query(self) -> list[WorkItem]:
        if not self.wiql:
            raise FetchError("no WIQL query configured")
        ids = self.query_ids(self.wiql)
        if not ids:
            return []
        return self._fetch(ids)

    def fetch_by_ids(self, ids: set[int]) -> list[WorkItem]:
        return self._fetch(sorted(ids))

    def _fetch(self, ids: list[int]) -> list[WorkItem]:
        items: list[WorkItem] = []
        for chunk in _chunks(ids, BATCH_LIMIT):
            payload = self._post(
                "wit/workitemsbatch",
                {"ids": chunk, "$expand": "relations", "errorPolicy": "omit"},
            )
            rows = [row for row in unwrap_value_list(payload) if row is not None]
            items.extend(parse_work_items(rows))
        return items
