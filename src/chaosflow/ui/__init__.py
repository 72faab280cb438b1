"""Command-line surface: argparse router, identifier prompts, and plain-text rendering."""
