"""HTTP API package (FastAPI app and response models)."""
