"""Ordered BSON documents, BSON value types, ObjectIds and Extended JSON parsing."""

__version__ = "0.1.0"
__all__ = ["builder", "document", "extjson", "oid", "values"]