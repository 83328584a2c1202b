"""Source discovery and the per-unit scan pipeline."""

from scan.files import find_cpp_sources
from scan.pipeline import CallScanner, ScanResult, run_scan

__all__ = ["CallScanner", "ScanResult", "find_cpp_sources", "run_scan"]
