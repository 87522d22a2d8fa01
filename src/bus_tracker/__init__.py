"""Live bus tracking with cloud-synced favorite stops."""

__version__ = "0.1.0"
