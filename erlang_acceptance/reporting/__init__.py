"""
Reporting layer for the Erlang acceptance engine.

Handles:
- Report generation and overall exit status
- Multiple output formats (JSON, Markdown, summary)
"""

from .reporter import Report, Reporter

__all__ = [
    "Report",
    "Reporter",
]
