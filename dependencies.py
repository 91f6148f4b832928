"""
dependencies.py

Responsibility: Declares the FastAPI Depends() provider functions for the
application-level objects created during the lifespan.
Does NOT: contain business logic, HTTP handlers, or construct clients.
"""

from __future__ import annotations

from fastapi import Request

from services.challenge_service import ChallengeSolver


def get_solver(request: Request) -> ChallengeSolver:
    """
    Returns the initialised ChallengeSolver stored on app.state.

    Tests override this provider with a stub exposing the same interface.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The application-level ChallengeSolver.
    """
    return request.app.state.solver
