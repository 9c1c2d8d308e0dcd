"""Configuration, errors and the high-level filtering pipeline."""
