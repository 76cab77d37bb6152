"""HTTP API for the verification pipeline.

Run with:
    uvicorn carecheck.api.app:app
"""
