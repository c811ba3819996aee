"""
FastAPI dependency injection for shared logging.
"""

from fastapi import Request

from formflow.logger import FormLogger


def get_logger(request: Request) -> FormLogger:
    """Return the shared FormLogger instance from app state."""
    return request.app.state.logger
