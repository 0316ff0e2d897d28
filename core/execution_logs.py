"""
Execution history: list past runs newest first and regenerate the script for
one of them. Regeneration fetches the plan and calls the generation endpoint
again; it never re-executes, the stored output is shown as recorded.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from core.api_client import ApiClient
from core.config import settings
from core.errors import DecodeError, HttpStatusError
from core.log_sink import LogSink
from core.models import ExecutionRecord
from core.payload import build_payload
from core.pipeline import generate_script
from core.plan_loader import load_plan
from core.sanitize import strip_code_fence

logger = logging.getLogger(__name__)

_record_list = TypeAdapter(List[ExecutionRecord])


@dataclass
class ScriptPreview:
    test_case_id: str
    script: str
    stored_output: Optional[str]


def sort_execution_records(records: List[ExecutionRecord]) -> List[ExecutionRecord]:
    return sorted(records, key=lambda r: (r.datestamp or "", r.exetime or ""), reverse=True)


def list_execution_records(client: ApiClient) -> List[ExecutionRecord]:
    resp = client.get("ExecutionLogs")
    if not resp.ok:
        raise HttpStatusError(resp.status_code, resp.text, f"Error loading logs: {resp.status_code}")
    try:
        records = _record_list.validate_python(json.loads(resp.text) or [])
    except (ValueError, ValidationError) as exc:
        raise DecodeError(resp.text, f"Execution logs could not be decoded: {exc}") from exc
    return sort_execution_records(records)


def regenerate_script(client: ApiClient, record: ExecutionRecord, log: Optional[LogSink] = None) -> ScriptPreview:
    if not record.testcaseid:
        raise ValueError(f"Execution {record.exeid} has no test case id")

    loaded = load_plan(client, record.testcaseid, log=log, by_query=True)
    payload = build_payload(loaded.decode(), record.testcaseid)

    script_type = record.scripttype or settings.script_type
    resp = generate_script(client, record.testcaseid, payload, script_type, settings.script_lang)
    if not resp.ok:
        if log is not None:
            log.append(f"✗ Error generating script: {resp.status_code}")
        raise HttpStatusError(resp.status_code, resp.text, f"Error generating script: {resp.status_code}")

    if log is not None:
        log.append(f"✓ Script generated ({len(resp.text)} bytes)")
    logger.info("Regenerated %s script for execution %s", script_type, record.exeid)
    return ScriptPreview(
        test_case_id=record.testcaseid,
        script=strip_code_fence(resp.text),
        stored_output=record.output,
    )


def download_filename(test_case_id: str, when: datetime) -> str:
    return f"{test_case_id}_generated_script_{when:%Y%m%d_%H%M%S}.py"


def save_script(
    directory: Optional[Path],
    test_case_id: str,
    script: str,
    when: Optional[datetime] = None,
) -> Path:
    directory = Path(directory or settings.download_dir)
    os.makedirs(directory, exist_ok=True)
    path = directory / download_filename(test_case_id, when or datetime.now())
    path.write_text(script, encoding="utf-8")
    logger.info("Script saved to %s", path)
    return path
