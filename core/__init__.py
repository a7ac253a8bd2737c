"""Core (UI-agnostic) insight dashboard logic.

This package contains:
- the dataset model and a seeded synthetic dataset provider
- filter normalization, filtering and time-range restriction
- selection precedence, session state and interaction events
- view compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
