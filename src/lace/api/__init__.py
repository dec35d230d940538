"""HTTP API exposing per-thread timelines."""
