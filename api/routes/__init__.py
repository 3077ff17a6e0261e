"""
API Routes for the Lead Scoring Engine.
"""

from . import leads

__all__ = ["leads"]
