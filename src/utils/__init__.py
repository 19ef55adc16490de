"""Utility modules for the migration.

Includes:
- Logging configuration
- Structured pipeline logging
- JSONL file helpers
"""

from .logging_config import setup_logging
from .file_io import read_jsonl, write_jsonl
from .pipeline_logger import PipelineLogger, timed_operation

__all__ = [
    "setup_logging",
    "read_jsonl",
    "write_jsonl",
    "PipelineLogger",
    "timed_operation",
]
