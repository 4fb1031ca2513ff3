"""Run report and CI step outputs."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RunReportService:
    """Collects step timings and the run outcome.

    The report is written as JSON when ``report_file`` is set, and the
    outcome is appended to the CI output file when ``outputs_file`` is set.
    """

    OUTPUT_KEYS = ("status", "branch", "pull_request_number", "pull_request_url")

    def __init__(self, logger, report_file: Optional[str] = None, outputs_file: Optional[str] = None):
        self.report_file = report_file
        self.outputs_file = outputs_file
        self.logger = logger
        self.report: Dict[str, Any] = {
            "run_id": None,
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "metadata": {},
            "steps": [],
            "results": {},
            "error": None,
        }

    def start_run(self, run_id: str, metadata: Dict[str, Any]):
        self.report["run_id"] = run_id
        self.report["status"] = "running"
        self.report["started_at"] = self._now()
        self.report["metadata"] = metadata
        self.write()

    def step_started(self, step_name: str):
        self.report["steps"].append(
            {
                "name": step_name,
                "status": "running",
                "started_at": self._now(),
                "finished_at": None,
                "duration_seconds": None,
                "error": None,
            }
        )

    def step_finished(self, step_name: str, status: str, error: Optional[str] = None):
        for step in reversed(self.report["steps"]):
            if step["name"] == step_name and step["status"] == "running":
                step["status"] = status
                step["finished_at"] = self._now()
                step["error"] = error
                step["duration_seconds"] = self._elapsed(step["started_at"], step["finished_at"])
                break
        self.write()

    def set_result(self, key: str, value: Any):
        self.report["results"][key] = value

    def finalize(self, status: str, error: Optional[str] = None):
        self.report["status"] = status
        self.report["finished_at"] = self._now()
        if self.report.get("started_at"):
            self.report["duration_seconds"] = self._elapsed(
                self.report["started_at"],
                self.report["finished_at"],
            )
        self.report["error"] = error
        self.write()
        self.write_outputs()

    def write(self):
        if not self.report_file:
            return

        os.makedirs(os.path.dirname(self.report_file) or ".", exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            prefix="run-report-",
            suffix=".json",
            dir=os.path.dirname(os.path.abspath(self.report_file)),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.report, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.report_file)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    def write_outputs(self):
        if not self.outputs_file:
            return

        values = {"status": self.report["status"]}
        values.update(self.report["results"])
        lines = []
        for key in self.OUTPUT_KEYS:
            value = values.get(key)
            lines.append(f"{key}={'' if value is None else value}\n")

        try:
            with open(self.outputs_file, "a", encoding="utf-8") as file_obj:
                file_obj.writelines(lines)
        except OSError as exc:
            self.logger.warning("Could not write step outputs to '%s': %s", self.outputs_file, exc)

    @staticmethod
    def _elapsed(started_at: str, finished_at: str) -> float:
        started = datetime.fromisoformat(started_at)
        finished = datetime.fromisoformat(finished_at)
        return (finished - started).total_seconds()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
