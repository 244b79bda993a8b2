"""Core helpers: enums, worker lifecycle, structured logging."""
