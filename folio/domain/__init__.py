"""Domain types: entity-kind descriptors, query specs and caller-facing records."""
