"""
Promotion pipeline.
"""

from .promoter import DiagnosticSink, Promoter

__all__ = ["DiagnosticSink", "Promoter"]
