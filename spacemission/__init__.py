"""Space Mission - quiz session and progression engine for the planet/level curriculum."""

__version__ = "0.1.0"
