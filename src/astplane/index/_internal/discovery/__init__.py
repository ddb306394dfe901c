"""Source file discovery."""

from astplane.index._internal.discovery.scanner import ScanResult, SourceScanner, matches_glob

__all__ = ["ScanResult", "SourceScanner", "matches_glob"]
