"""Local emulator of the control plane, inference API and per-index data plane."""
