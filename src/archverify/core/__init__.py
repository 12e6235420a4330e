"""Pipeline orchestration."""

from .pipeline import PipelineState, VerificationPipeline

__all__ = ["PipelineState", "VerificationPipeline"]
