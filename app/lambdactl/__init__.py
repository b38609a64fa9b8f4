"""lambdactl - Minimal, reproducible serverless function artifacts."""

__version__ = "0.1.0"
