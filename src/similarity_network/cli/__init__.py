"""CLI for similarity-network."""
