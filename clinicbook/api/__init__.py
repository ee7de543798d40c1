"""Application-wide API wiring."""
