"""Floorscan - cumulative size report of entries at a given directory depth.

The package discovers entries at a target depth ("floor") below a base
directory, resolves their recursive byte sizes on an adaptively sized
worker pool, and returns filtered, unit-converted results.
"""

from floorscan.core.orchestrator import ScanOrchestrator, ScanResult, scan

__all__ = ["ScanOrchestrator", "ScanResult", "scan"]
