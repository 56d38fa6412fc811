"""OpenAI Key Wrapper: swaps a dummy API key for the real one in front of an AI gateway."""

__version__ = "1.0.0"
