"""HTTP API for the fee engine."""
