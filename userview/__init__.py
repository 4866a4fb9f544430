"""Cache-consistent, optimistically mutated client view of a user collection."""
