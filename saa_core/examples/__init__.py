"""Sample metrics, prices and positions for demos and the in-memory service."""
