"""Storage core of a persistent key/value store: entries, index, data files."""

__version__ = "0.1.0"
__all__ = ["btree", "constants", "datafile", "entry", "errors"]