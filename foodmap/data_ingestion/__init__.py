"""
Place data ingestion package.

Responsibilities:
- Normalise raw place records (Google Place Details or canonical) into the
  canonical Place schema.
- Persist the seed dataset read by the local place store.
- Upsert the seed into MongoDB for the ``mongodb`` storage mode.
"""
