"""Core application infrastructure: config, database, logging, telemetry."""
