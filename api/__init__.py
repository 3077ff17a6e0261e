"""
API Module for the Lead Scoring Engine.

FastAPI application with routes for:
- Parsing inbound DMs for lead creation
- Scoring and rescoring leads
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
