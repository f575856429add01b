"""Test infrastructure for the promo_capture test suite."""
