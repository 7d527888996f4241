"""Hash stores, allocators, lock, version and address caches, and benchmark table loaders."""

__version__ = "0.1.0"