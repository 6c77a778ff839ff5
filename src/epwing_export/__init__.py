"""Export EB/EPWING dictionary discs to JSON."""

__version__ = "0.1.0"
