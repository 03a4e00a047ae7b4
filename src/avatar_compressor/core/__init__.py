"""Core engine: data types, configuration, events, overrides, caching and the batch pipeline."""
