"""Terminal UI helpers."""
