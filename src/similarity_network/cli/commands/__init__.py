"""CLI commands for similarity-network."""
