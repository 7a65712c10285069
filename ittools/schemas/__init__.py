# ittools/schemas/__init__.py
"""
The `schemas` package defines the Pydantic models that cross component
boundaries: tool descriptors, caller-facing results and manifest views.
"""
