"""
Taste profile construction.

Turns a user's watched log and collections into a ranked genre signal.
"""

from framevault.services.profile.builder import TasteProfileBuilder

__all__ = ["TasteProfileBuilder"]
