"""HTTP API for the payroll cycle engine."""
