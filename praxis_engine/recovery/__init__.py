from .classifier import ErrorType, classify_error
from .engine import ErrorRecoveryEngine
from .strategies import RecoveryOutcome, RecoveryStrategy

__all__ = ["ErrorType", "classify_error", "ErrorRecoveryEngine", "RecoveryOutcome", "RecoveryStrategy"]
