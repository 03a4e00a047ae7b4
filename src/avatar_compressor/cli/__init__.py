"""Command-line host for the avatar compressor."""
