"""Chunked concurrent processing."""
from .runner import ProgressSink, percent_complete, run_batches

__all__ = ["ProgressSink", "percent_complete", "run_batches"]
