"""Linear image-assembly pipeline."""

from prusti_playground.pipeline.base import BuildContext, Pipeline, Step, StepResult
from prusti_playground.pipeline.steps import STEP_NAMES, default_pipeline

__all__ = [
    "STEP_NAMES",
    "BuildContext",
    "Pipeline",
    "Step",
    "StepResult",
    "default_pipeline",
]
