"""Top-level package for DocuGen.

This package turns a single topic into a narrated, illustrated documentary:
an outline of chapters, three generated scenes per chapter, and a playback
sequencer that walks them in order. The main entry point is `DocumentaryRuntime`.
"""

from .runtime import DocumentaryRuntime

__all__ = ["DocumentaryRuntime", "__version__"]

__version__ = "0.1.0"
