from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class PipelineError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    exit_code: int = 1
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.user_message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


# ---- Skippable (recovered inside their phase) ----
class RecordError(PipelineError):
    def __init__(self, user_message: str = "Record rejected.", **ctx: Any):
        super().__init__("record_rejected", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class MediaVerificationError(PipelineError):
    """GPS metadata survived stripping for a single asset."""

    def __init__(self, user_message: str = "Media metadata verification failed.", **ctx: Any):
        super().__init__("media_verification_failed", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


# ---- Fatal (abort the run, prior output is preserved) ----
class ConfigError(PipelineError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, exit_code=5, context=ctx)


class NoRecordsError(PipelineError):
    def __init__(self, user_message: str = "Pipeline produced zero records.", **ctx: Any):
        super().__init__("no_records", user_message, severity=Severity.CRITICAL, recoverable=False, exit_code=2, context=ctx)


class SchemaValidationError(PipelineError):
    def __init__(self, user_message: str = "Output failed schema validation.", **ctx: Any):
        super().__init__("schema_violation", user_message, severity=Severity.CRITICAL, recoverable=False, exit_code=3, context=ctx)


class PrivacyViolationError(PipelineError):
    def __init__(self, user_message: str = "Output failed the privacy audit.", **ctx: Any):
        super().__init__("privacy_violation", user_message, severity=Severity.CRITICAL, recoverable=False, exit_code=4, context=ctx)


class UnexpectedPipelineError(PipelineError):
    def __init__(self, user_message: str = "Pipeline failed unexpectedly.", **ctx: Any):
        super().__init__("unexpected_failure", user_message, severity=Severity.CRITICAL, recoverable=False, exit_code=1, context=ctx)
