"""
Pipeline — one-shot batch run: load, clean, validate, summarize, fit, compare.
"""

from .runner import PipelineResult, run_analysis, run_pipeline

__all__ = ["PipelineResult", "run_analysis", "run_pipeline"]
