"""
Report outputs: the static HTML page and the JSON Lines export.
"""

from .html_report import next_run_at, render_report, truncate, write_report
from .json_report import write_records_jsonl

__all__ = [
    'next_run_at',
    'render_report',
    'truncate',
    'write_report',
    'write_records_jsonl'
]
