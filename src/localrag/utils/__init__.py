"""localrag utilities."""
