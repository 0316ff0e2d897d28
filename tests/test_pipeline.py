"""Tests for core.pipeline.ScriptPipeline.

HTTP goes through a mocked requests.Session; temp scripts are written to
pytest's tmp_path so leftovers are easy to detect.
"""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.api_client import ApiClient
from core.log_sink import LogSink
from core.pipeline import PipelineStatus, ScriptPipeline, remove_quietly, script_extension
from core.plan_loader import LoadedPlan
from conftest import BASE_URL, make_response

PLAN = LoadedPlan(
    "TC-2",
    json.dumps(
        {
            "current_testid": "TC-2",
            "pretestid_steps": {"TC-1": {"step1": "log in"}},
            "pretestid_scripts": None,
            "current_bdd_steps": {"When": "user adds item"},
        }
    ),
)


@pytest.fixture
def pipeline(client: ApiClient, log: LogSink, tmp_path) -> ScriptPipeline:
    return ScriptPipeline(client, log, temp_dir=str(tmp_path), script_type="playwright", script_lang="python")


class TestPreflight:
    def test_no_plan_loaded_makes_no_network_call(self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink) -> None:
        result = pipeline.run("TC-2", None)

        assert result.status is PipelineStatus.NO_PLAN_LOADED
        assert not result.ok
        http.request.assert_not_called()
        assert "[09:05:07] ✗ Test plan not loaded. Please load test plan first." in log.lines

    def test_plan_for_another_test_case_is_not_used(self, pipeline: ScriptPipeline, http: MagicMock) -> None:
        result = pipeline.run("TC-3", PLAN)

        assert result.status is PipelineStatus.NO_PLAN_LOADED
        http.request.assert_not_called()

    def test_no_test_case_selected(self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink) -> None:
        result = pipeline.run(None, PLAN)

        assert result.status is PipelineStatus.NO_PLAN_LOADED
        http.request.assert_not_called()
        assert any("No test case selected" in line for line in log.lines)

    def test_undecodable_plan(self, pipeline: ScriptPipeline, http: MagicMock) -> None:
        result = pipeline.run("TC-2", LoadedPlan("TC-2", "not json"))

        assert result.status is PipelineStatus.DECODE_ERROR
        assert result.body == "not json"
        http.request.assert_not_called()


class TestHappyPath:
    def test_generate_and_execute(self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink, tmp_path) -> None:
        http.request.side_effect = [
            make_response(200, "```python\nassert True\n```"),
            make_response(200, "PASSED"),
        ]

        result = pipeline.run("TC-2", PLAN)

        assert result.ok
        assert result.script == "assert True\n"
        assert result.output == "PASSED"

        gen_call, exec_call = http.request.call_args_list
        assert gen_call.args == ("POST", f"{BASE_URL}/generate-test-script/TC-2")
        assert gen_call.kwargs["params"] == {"script_type": "playwright", "script_lang": "python"}
        assert gen_call.kwargs["json"] == {
            "pretestid - steps": {"TC-1": {"step1": "log in"}},
            "pretestid - scripts": {},
            "current testid": "TC-2",
            "current - bdd steps": {"When": "user adds item"},
        }
        assert exec_call.args == ("POST", f"{BASE_URL}/execute-code")
        assert exec_call.kwargs["params"] == {"script_type": "playwright"}
        filename = exec_call.kwargs["files"]["file"][0]
        assert filename.startswith("TC-2_") and filename.endswith(".py")

        text = log.text
        assert "Request payload:" in text
        assert '"current testid": "TC-2"' in text
        assert "✓ Script generated (" in text
        assert "--- EXECUTION OUTPUT ---\nPASSED\n--- END OUTPUT ---" in text
        assert log.lines[0].endswith("========== EXECUTION START ==========")
        assert log.lines[-1].endswith("========== EXECUTION END ==========")
        assert os.listdir(tmp_path) == []

    def test_uploaded_file_holds_sanitized_script(self, pipeline: ScriptPipeline, http: MagicMock) -> None:
        uploaded = {}

        def fake_request(method, url, **kwargs):
            if "files" not in kwargs:
                return make_response(200, "```python\nprint('hi')\n```\n")
            uploaded["content"] = kwargs["files"]["file"][1].read()
            return make_response(200, "ok")

        http.request.side_effect = fake_request

        pipeline.run("TC-2", PLAN)

        assert uploaded["content"] == b"print('hi')\n"


class TestFailures:
    def test_generation_failure_stops_before_execution(
        self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink, tmp_path
    ) -> None:
        http.request.return_value = make_response(500, "server error")

        result = pipeline.run("TC-2", PLAN)

        assert result.status is PipelineStatus.GENERATION_FAILED
        assert result.status_code == 500
        assert result.body == "server error"
        assert http.request.call_count == 1
        assert "✗ Script generation failed: 500\nserver error" in log.text
        assert os.listdir(tmp_path) == []

    def test_execution_failure_removes_temp_file(
        self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink, tmp_path
    ) -> None:
        http.request.side_effect = [make_response(200, "assert True"), make_response(502, "bad gateway")]

        result = pipeline.run("TC-2", PLAN)

        assert result.status is PipelineStatus.EXECUTION_FAILED
        assert result.status_code == 502
        assert result.script == "assert True"
        assert "✗ Execution failed: 502\nbad gateway" in log.text
        assert os.listdir(tmp_path) == []

    def test_transport_error_during_generation(self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink) -> None:
        http.request.side_effect = requests.ConnectionError("no route to host")

        result = pipeline.run("TC-2", PLAN)

        assert result.status is PipelineStatus.TRANSPORT_ERROR
        assert "no route to host" in log.text
        assert log.lines[-1].endswith("========== EXECUTION END ==========")

    def test_transport_error_during_execution_cleans_up(
        self, pipeline: ScriptPipeline, http: MagicMock, tmp_path
    ) -> None:
        http.request.side_effect = [make_response(200, "assert True"), requests.Timeout("timed out")]

        result = pipeline.run("TC-2", PLAN)

        assert result.status is PipelineStatus.TRANSPORT_ERROR
        assert os.listdir(tmp_path) == []

    def test_unwritable_temp_dir(self, client: ApiClient, http: MagicMock, log: LogSink, tmp_path) -> None:
        pipeline = ScriptPipeline(client, log, temp_dir=str(tmp_path / "missing"))
        http.request.return_value = make_response(200, "assert True")

        result = pipeline.run("TC-2", PLAN)

        assert result.status is PipelineStatus.PERSIST_FAILED
        assert http.request.call_count == 1


class TestHelpers:
    def test_remove_quietly_ignores_missing_file(self, tmp_path) -> None:
        remove_quietly(str(tmp_path / "gone.py"))

    def test_remove_quietly_deletes(self, tmp_path) -> None:
        path = tmp_path / "x.py"
        path.write_text("x")
        remove_quietly(str(path))
        assert not path.exists()

    def test_script_extension(self) -> None:
        assert script_extension("python") == ".py"
        assert script_extension("Python") == ".py"
        assert script_extension("ruby") == ".ruby"


class TestUploadReadFailure:
    def test_unreadable_script_is_reported_not_raised(
        self, pipeline: ScriptPipeline, http: MagicMock, log: LogSink, tmp_path
    ) -> None:
        """An OSError while opening the upload ends the run with a logged failure."""
        http.request.return_value = make_response(200, "assert True")

        with patch("core.api_client.open", side_effect=PermissionError("locked by antivirus"), create=True):
            result = pipeline.run("TC-2", PLAN)

        assert result.status is PipelineStatus.EXECUTION_FAILED
        assert result.script == "assert True"
        assert http.request.call_count == 1
        assert "locked by antivirus" in log.text
        assert log.lines[-1].endswith("========== EXECUTION END ==========")
        assert os.listdir(tmp_path) == []


class TestGenerationPath:
    def test_test_case_id_is_quoted(self, pipeline: ScriptPipeline, http: MagicMock) -> None:
        http.request.return_value = make_response(500, "nope")

        pipeline.run("TC#2", LoadedPlan("TC#2", "{}"))

        assert http.request.call_args.args == ("POST", f"{BASE_URL}/generate-test-script/TC%232")
