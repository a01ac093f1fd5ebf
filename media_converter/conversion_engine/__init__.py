"""
Package for the core conversion workflow logic, independent of any front end.
"""
from .decision import DecisionEngine
from .scanner import find_media_files, iter_conversion_candidates
from .worker import ConversionOrchestrator, format_summary
