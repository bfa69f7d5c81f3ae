"""Core cross-cutting primitives (result types, errors, config, container)."""
