"""localrag: local-only retrieval-augmented generation for a desktop assistant."""
