import json
import logging
from typing import List, Optional
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError

from core.api_client import ApiClient
from core.errors import DecodeError, HttpStatusError
from core.models import TestCase
from core.session import Session

logger = logging.getLogger(__name__)

_test_case_list = TypeAdapter(List[TestCase])


def list_test_cases(client: ApiClient, project_id: str) -> List[TestCase]:
    resp = client.get(f"projects/{quote(project_id, safe='')}/testcases")
    if not resp.ok:
        raise HttpStatusError(resp.status_code, resp.text, f"Failed to load test cases: {resp.status_code}")
    try:
        cases = _test_case_list.validate_python(json.loads(resp.text) or [])
    except (ValueError, ValidationError) as exc:
        raise DecodeError(resp.text, f"Test case list could not be decoded: {exc}") from exc
    logger.info("Loaded %d test cases for project %s", len(cases), project_id)
    return cases


def filter_test_cases(cases: List[TestCase], text: Optional[str]) -> List[TestCase]:
    needle = (text or "").strip().lower()
    if not needle:
        return list(cases)
    return [tc for tc in cases if needle in tc.testcaseid.lower()]


def describe_project(session: Session, project_id: str) -> tuple[str, str]:
    project = session.find_project(project_id)
    title = (project.title if project else None) or "Unknown Project"
    details = (
        f"ID: {project_id}\n"
        f"Type: {(project.projecttype if project else None) or 'N/A'}\n"
        f"Started: {(project.startdate if project else None) or 'N/A'}"
    )
    return title, details
