import json
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from pydantic import ValidationError

from core.api_client import ApiClient
from core.errors import DecodeError, PlanFetchError
from core.log_sink import LogSink
from core.models import TestPlan

logger = logging.getLogger(__name__)


def decode_plan(raw: str) -> TestPlan:
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DecodeError(raw, f"Test plan is not valid JSON: {exc}") from exc
    if data is None:
        data = {}
    try:
        return TestPlan.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(raw, f"Test plan has an unexpected shape: {exc}") from exc


@dataclass
class LoadedPlan:
    """A fetched plan, kept as the raw body so later steps can re-derive it."""

    test_case_id: str
    raw: str

    def decode(self) -> TestPlan:
        return decode_plan(self.raw)

    def pretty(self) -> str:
        try:
            return json.dumps(json.loads(self.raw), indent=2)
        except ValueError:
            return self.raw


def load_plan(
    client: ApiClient,
    test_case_id: str,
    log: Optional[LogSink] = None,
    by_query: bool = False,
) -> LoadedPlan:
    """Fetch the test plan for one test case.

    `by_query` selects the `TestPlan?testCaseId=` form of the resource used by
    the execution history view; the default is `testplan/{id}`.
    Raises PlanFetchError on non-2xx and DecodeError if the body is not a plan.
    """
    if log is not None:
        log.append(f"Fetching test plan for {test_case_id}...")

    if by_query:
        resp = client.get("TestPlan", params={"testCaseId": test_case_id})
    else:
        resp = client.get(f"testplan/{quote(test_case_id, safe='')}")

    if not resp.ok:
        if log is not None:
            log.append(f"✗ Failed to fetch test plan: {resp.status_code}")
        raise PlanFetchError(resp.status_code, resp.text)

    loaded = LoadedPlan(test_case_id=test_case_id, raw=resp.text)
    try:
        loaded.decode()
    except DecodeError:
        if log is not None:
            log.append("✗ Test plan response could not be decoded")
        raise

    logger.info("Loaded test plan for %s (%d bytes)", test_case_id, len(resp.text))
    if log is not None:
        log.append("✓ Test plan fetched successfully")
    return loaded
