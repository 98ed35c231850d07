"""Core scan engine: unit conversion, depth filtering, size resolution, and orchestration."""
