"""localrag command-line interface."""
