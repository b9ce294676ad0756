"""CLI layer — argument parsing, rendering, and the process error boundary.

This package is the outermost layer.  It may import from ``core``,
``infra`` and ``utils``; nothing imports from ``cli``.
"""
