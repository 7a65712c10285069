"""
ittools core package.

Discovers tool modules from a directory tree, derives manifest metadata from
them, and guards every tool call with rate limiting and input validation.
"""

__title__ = "ittools"
__version__ = "3.0.0"
__description__ = "IT utility tools behind a discovery, manifest and request-governance layer"

__all__ = [
    "app",
    "manifest",
    "registry",
    "secure_handler",
    "utils",
]
