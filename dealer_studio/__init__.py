"""Dealer persona management with per-stage outfit image generation."""

__version__ = "1.0.0"
