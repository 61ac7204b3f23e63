"""Demo data for a fresh portal database."""
