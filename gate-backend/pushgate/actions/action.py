"""
Push Action and Step: in-memory record of one push attempt and its append-only stage log.
Processors borrow the Action, append exactly one Step each, and may move approval_state.
"""
import os
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ApprovalState(str, Enum):
    UNDETERMINED = "UNDETERMINED"
    AUTO_APPROVED = "AUTO_APPROVED"
    AUTO_REJECTED = "AUTO_REJECTED"
    PENDING_MANUAL_REVIEW = "PENDING_MANUAL_REVIEW"
    ERRORED = "ERRORED"

    @property
    def is_terminal(self) -> bool:
        return self in (ApprovalState.AUTO_APPROVED, ApprovalState.AUTO_REJECTED, ApprovalState.ERRORED)


class Step:
    """Audit record of one pipeline stage. Sealed once attached to an Action."""

    def __init__(self, name: str):
        self.name = name
        self.log_lines: List[str] = []
        self.error = False
        self.error_message: Optional[str] = None
        self._sealed = False

    def _check_open(self) -> None:
        if self._sealed:
            raise RuntimeError(f"step {self.name!r} already attached to an action")

    def log(self, message: str) -> None:
        self._check_open()
        self.log_lines.append(message)

    def set_error(self, message: str) -> None:
        self._check_open()
        self.error = True
        self.error_message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "log_lines": list(self.log_lines),
            "error": self.error,
            "error_message": self.error_message,
        }

    def __repr__(self) -> str:
        return f"Step({self.name!r}, error={self.error})"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Action:
    repo_name: str
    proxy_git_path: str
    branch: str
    commit_from: str
    commit_to: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: int = field(default_factory=_now_ms)
    approval_state: ApprovalState = ApprovalState.UNDETERMINED
    steps: List[Step] = field(default_factory=list)

    @property
    def repo_path(self) -> str:
        return os.path.join(self.proxy_git_path, self.repo_name)

    @property
    def error(self) -> bool:
        return any(s.error for s in self.steps)

    @property
    def last_step(self) -> Optional[Step]:
        return self.steps[-1] if self.steps else None

    def add_step(self, step: Step) -> None:
        """Attach a finished step. Each step is attached once, in execution order."""
        if step._sealed or any(s is step for s in self.steps):
            raise ValueError(f"step {step.name!r} already attached")
        step._sealed = True
        self.steps.append(step)

    def set_auto_approval(self) -> None:
        self.approval_state = ApprovalState.AUTO_APPROVED

    def set_auto_rejection(self) -> None:
        self.approval_state = ApprovalState.AUTO_REJECTED

    def set_pending_review(self) -> None:
        self.approval_state = ApprovalState.PENDING_MANUAL_REVIEW

    def set_errored(self) -> None:
        self.approval_state = ApprovalState.ERRORED

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for audit storage and API responses."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "repo_name": self.repo_name,
            "branch": self.branch,
            "commit_from": self.commit_from,
            "commit_to": self.commit_to,
            "approval_state": self.approval_state.value,
            "error": self.error,
            "steps": [s.to_dict() for s in self.steps],
        }
