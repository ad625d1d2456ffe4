"""minibuild - minimal incremental build engine."""

__version__ = "0.1.0"
