"""API package - FastAPI surface for the display layer."""
