"""
Pipeline execution layer.

PipelineExecutor builds the state machine for a PipelineConfig and runs it.
"""

from .executor import PipelineExecutor

__all__ = ["PipelineExecutor"]
