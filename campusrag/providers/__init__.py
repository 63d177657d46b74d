"""Concrete adapters for the interfaces in ``campusrag.interfaces``."""
