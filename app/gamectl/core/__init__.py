"""Core launcher services: paths, config, catalog, sessions, and events."""
