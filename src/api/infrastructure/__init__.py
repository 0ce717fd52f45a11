"""Cross-cutting infrastructure: settings, logging, database and observability."""
