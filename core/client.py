from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import requests

from core import config
from core.errors import RemoteRequestError, TransportError

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json"}


def _normalize_path(path: str) -> str:
    path = str(path or "").strip()
    if not path.startswith("/"):
        path = "/" + path
    return path


def _encode_payload(payload: Any) -> str:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump()
    if not isinstance(payload, Mapping):
        raise TypeError(f"payload must be a mapping, got {type(payload).__name__}")
    try:
        return json.dumps(dict(payload), allow_nan=False)
    except ValueError as exc:
        # NaN and infinity have no JSON form
        raise TypeError(f"payload is not JSON-serializable: {exc}") from exc


class ReportClient:
    """Thin JSON client for the report service.

    Session cookies live on the underlying ``requests.Session`` so they are sent
    with every call, the same way a browser sends credentials through the
    reverse proxy. Transport failures and failure statuses are raised as
    ``TransportError`` and ``RemoteRequestError``; nothing is retried or cached.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        cookies: Optional[Dict[str, str]] = None,
    ):
        self.base_url = (base_url if base_url is not None else config.API_BASE).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(JSON_HEADERS)
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT
        if cookies:
            self.session.cookies.update(cookies)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{_normalize_path(path)}"

    def fetch_resource(self, path: str) -> Any:
        return self._request("GET", path)

    def submit_resource(self, path: str, payload: Any) -> Any:
        body = _encode_payload(payload)
        return self._request("POST", path, data=body, headers={"Content-Type": "application/json"})

    def ping(self) -> Any:
        return self.fetch_resource("/ping")

    def request_report(self, company: str) -> Any:
        return self.submit_resource("/report", {"company": str(company)})

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self.url_for(path)
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(url, reason=type(exc).__name__) from exc

        if not 200 <= resp.status_code < 300:
            logger.warning("%s %s returned %s", method, url, resp.status_code)
            raise RemoteRequestError(resp.status_code, url)
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteRequestError(resp.status_code, url, detail="response body is not JSON") from exc
