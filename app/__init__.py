"""Sports Stats Dashboard API."""
