"""
Utils package initialization
"""

from .exporters import ReportExporter

__all__ = [
    'ReportExporter'
]
