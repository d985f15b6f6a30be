"""Live monitor for a networked 3D-printer filament bridge."""

__version__ = "0.1.0"
