"""
HTTP transport for the test-automation service.

Every call the core makes goes through ApiClient. A response with a non-2xx
status is a normal result the caller inspects; only failures that never
produced a response are raised, as TransportError.

Pass a mock `session` to ApiClient() in tests instead of letting it create a
real requests.Session.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from core.config import settings
from core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/") + "/"
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._token = token
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def set_bearer(self, token: Optional[str]) -> None:
        self._token = token

    def url_for(self, path: str) -> str:
        return self.base_url + path.lstrip("/")

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        file_path: Optional[str] = None,
    ) -> ApiResponse:
        """Send one request and return its status and body text.

        At most one body may be given: `json_body` is sent as application/json,
        `file_path` as a single-file multipart upload under the field "file".
        """
        if json_body is not None and file_path is not None:
            raise ValueError("Pass either json_body or file_path, not both")

        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        kwargs: Dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body

        url = self.url_for(path)
        try:
            if file_path is not None:
                with open(file_path, "rb") as fh:
                    kwargs["files"] = {"file": (os.path.basename(file_path), fh)}
                    resp = self.session.request(method, url, **kwargs)
            else:
                resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(str(exc)) from exc

        logger.debug("%s %s -> %s", method, url, resp.status_code)
        return ApiResponse(status_code=resp.status_code, text=resp.text)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        file_path: Optional[str] = None,
    ) -> ApiResponse:
        return self.request("POST", path, params=params, json_body=json_body, file_path=file_path)
