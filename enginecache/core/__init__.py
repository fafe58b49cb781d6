"""Core pipeline: hashing, content-addressed cache, extraction, resolution."""
