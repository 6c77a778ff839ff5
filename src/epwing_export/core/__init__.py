"""Export pipeline."""
