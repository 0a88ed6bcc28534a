"""Services for balance lookups, sweep decisions, transfers and config management."""
