"""Core (UI-agnostic) impact dashboard logic.

This package contains:
- the report service client (requests -> JSON)
- the dataset registry (static table or live report service)
- the view-state controller and derived view builder
- chart helpers (Altair -> Vega-Lite spec dict)
"""
