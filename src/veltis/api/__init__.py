"""HTTP API for the VELTIS backend."""
