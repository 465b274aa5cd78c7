"""Command-line interface for the JSON-RPC SMD client."""
