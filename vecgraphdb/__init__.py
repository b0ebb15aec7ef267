"""Schema catalog, write-ahead log, graph index segments and graph-guided vector search."""

__version__ = "0.1.0"