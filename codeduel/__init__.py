"""Code duel gateway: LLM-backed solve and evaluate endpoints."""

__version__ = "0.1.0"
