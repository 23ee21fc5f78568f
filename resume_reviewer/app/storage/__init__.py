"""Adapters over the external storage collaborators.

Modules:
    kv_store: The key-value collaborator and its SQLAlchemy implementation.
    records: Resume records serialized under `resume:{id}` keys.
    blobs: Uploaded documents and preview images.

"""
