"""Settings, domain errors, time helpers and caller identity."""
