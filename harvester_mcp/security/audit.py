"""Structured JSON audit logging using structlog.

Every tool call is logged (attempts, successes, rejections, errors and
timeouts) to a JSONL file so cluster reads and deletions made on behalf of
the agent can be reviewed afterwards. Records name the object a call was
aimed at (``resource_type``, ``namespace``, ``name``) as top-level fields
so the log can be filtered per namespace or object without parsing inputs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

# Tool arguments that identify the target object
TARGET_FIELDS = ("resource_type", "namespace", "name")

MAX_SUMMARY_LENGTH = 200


class AuditLogger:
    """Audit trail of tool calls against the cluster."""

    def __init__(self, log_path: str) -> None:
        """Open (or create) the JSONL audit file for appending.

        Args:
            log_path: Path to the JSONL audit log file.
        """
        self._log_path = Path(log_path)
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._log_path, "a", buffering=1)  # noqa: SIM115

        # Dedicated logger so audit records never mix with process logs
        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=self._file),
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.JSONRenderer(sort_keys=True),
            ],
        )

    def __enter__(self) -> AuditLogger:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def path(self) -> Path:
        return self._log_path

    def log_session_start(self, **context: Any) -> None:
        self._logger.info("session_start", **context)

    def log_session_end(self) -> None:
        self._logger.info("session_end")

    def log_attempt(self, tool_name: str, tool_input: dict) -> None:
        self._logger.info("tool_attempt", tool=tool_name, **_target(tool_input))

    def log_success(self, tool_name: str, tool_input: dict, result: dict) -> None:
        """Record a completed call with the first line of its report.

        The full report is not kept; the headline ("Found 3 pod(s):",
        "Successfully deleted ...") is enough to tell what the agent saw.
        """
        output = result.get("output", "")
        self._logger.info(
            "tool_success",
            tool=tool_name,
            summary=_summary(output),
            output_lines=len(output.splitlines()),
            **_target(tool_input),
        )

    def log_denied(self, tool_name: str, tool_input: dict, reason: str) -> None:
        """Record a call rejected before any request reached the cluster."""
        self._logger.warning("tool_denied", tool=tool_name, reason=reason, **_target(tool_input))

    def log_error(self, tool_name: str, tool_input: dict, error: str) -> None:
        self._logger.error("tool_error", tool=tool_name, error=error, **_target(tool_input))

    def log_timeout(self, tool_name: str, tool_input: dict) -> None:
        self._logger.warning("tool_timeout", tool=tool_name, **_target(tool_input))

    def close(self) -> None:
        """Close the audit log file."""
        if not self._file.closed:
            self._file.close()


def _target(tool_input: dict) -> dict[str, Any]:
    """Split tool input into target fields and any remaining arguments."""
    fields: dict[str, Any] = {
        key: tool_input[key] for key in TARGET_FIELDS if tool_input.get(key) not in (None, "")
    }
    extra = {key: value for key, value in tool_input.items() if key not in TARGET_FIELDS}
    if extra:
        fields["args"] = extra
    return fields


def _summary(output: str) -> str:
    """First non-empty line of a report, cut to ``MAX_SUMMARY_LENGTH``."""
    for line in output.splitlines():
        line = line.strip()
        if line:
            if len(line) > MAX_SUMMARY_LENGTH:
                return line[:MAX_SUMMARY_LENGTH] + "..."
            return line
    return ""
