"""Command-line interface for the sciencedao research agent."""
