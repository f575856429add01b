"""Command-line helpers shared by promo_capture entry points."""
