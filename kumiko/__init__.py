"""Kumiko panel geometry package."""

__all__ = ["builtin_patterns", "clipping", "commands", "export", "model", "panel", "parameters", "pipeline", "repository", "segments", "triangle", "vec2"]
