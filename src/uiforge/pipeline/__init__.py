"""Generate / Modify orchestration."""

from .service import PipelineResult, UIPipeline, coerce_modify

__all__ = ["PipelineResult", "UIPipeline", "coerce_modify"]
