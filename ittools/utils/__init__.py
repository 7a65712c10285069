# ittools/utils/__init__.py
"""
The `utils` package holds the leaf components of the gateway: tool discovery
and introspection, the rate limiter, the input validation catalog, the
sanitizer, and the cross-cutting logging and configuration helpers.
"""
