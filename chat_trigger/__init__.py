"""Live chat trigger monitor: watches a chat stream and pushes keyword hits to listeners."""

__version__ = "0.1.0"
