"""Public package exports."""

from promptable.call_history import CallHandle, CallHistory, CallHistoryError
from promptable.chain import Chain, build_chain
from promptable.models.call_record import CallRecord
from promptable.step import Step, StepValidationError
from promptable.steps import FunctionStep, PromptStep

__all__ = [
    "CallHandle",
    "CallHistory",
    "CallHistoryError",
    "CallRecord",
    "Chain",
    "FunctionStep",
    "PromptStep",
    "Step",
    "StepValidationError",
    "build_chain",
]
