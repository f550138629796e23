"""Brand Studio - personal brand and product visual generation with Gemini."""

__version__ = "0.1.0"
