"""codemate: backend and session core for a NeoForge modding IDE."""

__version__ = "0.1.0"
