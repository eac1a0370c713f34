"""Model types for chain configuration and call recording."""

from promptable.models.call_record import CallRecord
from promptable.models.chain_spec import ChainSpec
from promptable.models.loaded_chain_file import LoadedChainFile
from promptable.models.model_spec import ModelSpec
from promptable.models.step_spec import StepSpec

__all__ = [
    "CallRecord",
    "ChainSpec",
    "LoadedChainFile",
    "ModelSpec",
    "StepSpec",
]
