"""Domain apps of the shared calendar."""
