"""Command implementations for the minibuild CLI."""
