"""External service clients (upstream WFS listing)."""
