"""Core gameplay primitives (action events, outcomes, and log text).

Kept free of FastAPI concerns so it can be reused by API routes, CLI, and tests.
"""
