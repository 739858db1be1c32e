"""Core (UI-agnostic) pivot logic.

This package contains:
- sheet loading and row normalization (XLSX -> pandas -> Row)
- status ordering
- the three-level status rollup and prior-period targets
- the request coordinator that runs the pipeline off the UI thread
- payload builders and chart helpers (Altair -> Vega-Lite spec dict)
"""
