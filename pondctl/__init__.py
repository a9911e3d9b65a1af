"""pondctl — control plane for a local ecosystem of version-controlled projects."""

__version__ = "0.1.0"
