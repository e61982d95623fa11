"""Command line interface for browsing a database through a Labrador adapter."""
