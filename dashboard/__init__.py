"""
Dashboard presentation on top of saa-core: a plain-text report of the
active portfolio's summary.
"""

from dashboard.report import print_report

__all__ = ["print_report"]
