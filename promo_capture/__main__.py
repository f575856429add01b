"""Allow ``python -m promo_capture`` to run one capture cycle."""

from __future__ import annotations

from . import run


if __name__ == "__main__":
    run()
