"""
Generate-and-execute sequence for one test case.

    preflight -> build payload -> generate -> strip fence -> persist
              -> execute -> cleanup

Steps run strictly in order with no retries. Every step writes progress to the
LogSink; a failing step logs and ends the run with a non-ok PipelineResult.
Nothing here raises to the caller.
"""

import json
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import quote

from core.api_client import ApiClient, ApiResponse
from core.config import settings
from core.errors import DecodeError, TransportError
from core.log_sink import LogSink
from core.models import GenerateScriptRequest
from core.payload import build_payload
from core.plan_loader import LoadedPlan
from core.sanitize import strip_code_fence

logger = logging.getLogger(__name__)

SCRIPT_EXTENSIONS = {"python": ".py", "javascript": ".js", "typescript": ".ts", "java": ".java"}
PREVIEW_CHARS = 300


class PipelineStatus(str, Enum):
    COMPLETED = "completed"
    NO_PLAN_LOADED = "no_plan_loaded"
    DECODE_ERROR = "decode_error"
    GENERATION_FAILED = "generation_failed"
    PERSIST_FAILED = "persist_failed"
    EXECUTION_FAILED = "execution_failed"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class PipelineResult:
    status: PipelineStatus
    status_code: Optional[int] = None
    body: Optional[str] = None
    script: Optional[str] = None
    output: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is PipelineStatus.COMPLETED


def remove_quietly(path: str) -> None:
    """Best-effort delete; a file that cannot be removed is left behind."""
    try:
        os.remove(path)
    except OSError as exc:
        logger.debug("Could not remove temporary script %s: %s", path, exc)


def script_extension(script_lang: str) -> str:
    return SCRIPT_EXTENSIONS.get(script_lang.lower(), f".{script_lang.lower()}")


def generate_script(
    client: ApiClient,
    test_case_id: str,
    payload: GenerateScriptRequest,
    script_type: str,
    script_lang: str,
) -> ApiResponse:
    return client.post(
        f"generate-test-script/{quote(test_case_id, safe='')}",
        params={"script_type": script_type, "script_lang": script_lang},
        json_body=payload.to_wire(),
    )


class ScriptPipeline:
    def __init__(
        self,
        client: ApiClient,
        log: LogSink,
        temp_dir: Optional[str] = None,
        script_type: Optional[str] = None,
        script_lang: Optional[str] = None,
    ):
        self.client = client
        self.log = log
        self.temp_dir = temp_dir or tempfile.gettempdir()
        self.script_type = script_type or settings.script_type
        self.script_lang = script_lang or settings.script_lang

    def run(self, test_case_id: Optional[str], plan: Optional[LoadedPlan]) -> PipelineResult:
        self.log.append("========== EXECUTION START ==========")
        try:
            result = self._run(test_case_id, plan)
        finally:
            self.log.append("========== EXECUTION END ==========")
        logger.info("Pipeline for %s finished: %s", test_case_id, result.status.value)
        return result

    def _run(self, test_case_id: Optional[str], plan: Optional[LoadedPlan]) -> PipelineResult:
        if not test_case_id:
            self.log.append("✗ No test case selected. Please load a test plan first.")
            return PipelineResult(PipelineStatus.NO_PLAN_LOADED)

        self.log.append("[STEP 1] Building request payload from test plan...")
        if plan is None or plan.test_case_id != test_case_id:
            self.log.append("✗ Test plan not loaded. Please load test plan first.")
            return PipelineResult(PipelineStatus.NO_PLAN_LOADED)

        try:
            test_plan = plan.decode()
        except DecodeError as exc:
            self.log.append(f"✗ Could not read the loaded test plan: {exc}")
            return PipelineResult(PipelineStatus.DECODE_ERROR, body=exc.body)

        payload = build_payload(test_plan, test_case_id)
        self.log.append(f"Request payload:\n{json.dumps(payload.to_wire(), indent=2)}")

        self.log.append("[STEP 2] Sending request to generate-test-script...")
        try:
            resp = generate_script(self.client, test_case_id, payload, self.script_type, self.script_lang)
        except TransportError as exc:
            self.log.append(f"✗ Error contacting the generation service: {exc}")
            return PipelineResult(PipelineStatus.TRANSPORT_ERROR)

        if not resp.ok:
            self.log.append(f"✗ Script generation failed: {resp.status_code}\n{resp.text}")
            return PipelineResult(PipelineStatus.GENERATION_FAILED, status_code=resp.status_code, body=resp.text)

        self.log.append(f"✓ Script generated ({len(resp.text)} bytes)")
        self.log.append(f"Script preview:\n{resp.text[:PREVIEW_CHARS]}...")
        script = strip_code_fence(resp.text)

        try:
            path = self._persist(test_case_id, script)
        except OSError as exc:
            self.log.append(f"✗ Could not save the script: {exc}")
            return PipelineResult(PipelineStatus.PERSIST_FAILED, script=script)
        self.log.append(f"✓ Script saved: {os.path.basename(path)}")

        try:
            return self._execute(path, script)
        finally:
            remove_quietly(path)

    def _persist(self, test_case_id: str, script: str) -> str:
        safe_id = re.sub(r"[^\w.-]", "_", test_case_id)
        name = f"{safe_id}_{time.time_ns()}{script_extension(self.script_lang)}"
        path = os.path.join(self.temp_dir, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(script)
        return path

    def _execute(self, path: str, script: str) -> PipelineResult:
        self.log.append("[STEP 3] Uploading and executing script...")
        try:
            resp = self.client.post("execute-code", params={"script_type": self.script_type}, file_path=path)
        except TransportError as exc:
            self.log.append(f"✗ Error contacting the execution service: {exc}")
            return PipelineResult(PipelineStatus.TRANSPORT_ERROR, script=script)
        except OSError as exc:
            self.log.append(f"✗ Could not read the saved script for upload: {exc}")
            return PipelineResult(PipelineStatus.EXECUTION_FAILED, script=script)

        if not resp.ok:
            self.log.append(f"✗ Execution failed: {resp.status_code}\n{resp.text}")
            return PipelineResult(
                PipelineStatus.EXECUTION_FAILED, status_code=resp.status_code, body=resp.text, script=script
            )

        self.log.append("✓ Script executed successfully")
        self.log.append(f"--- EXECUTION OUTPUT ---\n{resp.text}\n--- END OUTPUT ---")
        return PipelineResult(PipelineStatus.COMPLETED, status_code=resp.status_code, script=script, output=resp.text)
