"""Report Assembler - Orchestrates the weekly status report."""

from cyclereport.report.assembler import ReportAssembler
from cyclereport.report.dates import last_weeks_monday
from cyclereport.report.exceptions import EnhancementAbortedError, ReportError
from cyclereport.report.fanout import gather_all, gather_map
from cyclereport.report.render import STATE_ANNOTATIONS, state_annotation

__all__ = [
    "EnhancementAbortedError",
    "ReportAssembler",
    "ReportError",
    "STATE_ANNOTATIONS",
    "gather_all",
    "gather_map",
    "last_weeks_monday",
    "state_annotation",
]
