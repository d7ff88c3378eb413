"""Command-line interface for the history migration tool."""
