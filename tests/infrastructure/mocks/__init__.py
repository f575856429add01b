"""Mock devices, recorders and endpoints for tests that run without hardware."""
