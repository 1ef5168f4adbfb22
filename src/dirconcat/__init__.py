"""dirconcat: concatenate a directory tree into size-bounded text outputs."""

__version__ = "0.1.0"
