"""Command-line entry points for cityrank."""
