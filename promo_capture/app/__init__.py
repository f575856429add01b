"""Application entrypoints for promo_capture."""

from .runner import main, parse_args, run_cycle

__all__ = ["main", "parse_args", "run_cycle"]
