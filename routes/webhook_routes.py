"""
routes/webhook_routes.py

Responsibility: HTTP endpoints through which cert-manager hands challenges to
the solver: a liveness probe and the ChallengePayload endpoint that dispatches
Present / CleanUp actions.
Does NOT: talk to the DNS API, read secrets, or serve API discovery documents.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_solver
from exceptions import ChallengeError, SolverError
from models import ChallengePayload, ChallengeResponse, ChallengeStatus
from services.challenge_service import ChallengeSolver

logger = logging.getLogger(__name__)

router = APIRouter()

ACTION_PRESENT = "Present"
ACTION_CLEANUP = "CleanUp"


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness probe; returns {"status": "ok"} while the process is serving."""
    return {"status": "ok"}


@router.post(
    "/apis/{group}/v1alpha1/{solver_name}",
    response_model=ChallengePayload,
    response_model_exclude_none=True,
)
async def solve_challenge(
    group: str,
    solver_name: str,
    payload: ChallengePayload,
    solver: ChallengeSolver = Depends(get_solver),
) -> ChallengePayload:
    """
    Runs the requested action for one challenge and reports the outcome.

    Solver failures are not HTTP errors: they are returned as
    response.success=false with the stage message, matching how cert-manager
    expects webhook solvers to report problems.

    Args:
        group: API group from the URL; must match the configured group.
        solver_name: Solver name from the URL; must match the solver's name.
        payload: The ChallengePayload envelope sent by cert-manager.
        solver: The application-level solver.

    Returns:
        A ChallengePayload carrying only the response block.

    Raises:
        HTTPException: 404 for an unknown group or solver, 400 when the
            payload has no request block.
    """
    if group != solver.group_name or solver_name != solver.name:
        raise HTTPException(status_code=404, detail=f"unknown solver {group}/{solver_name}")
    if payload.request is None:
        raise HTTPException(status_code=400, detail="ChallengePayload.request is required")

    request = payload.request
    try:
        if request.action == ACTION_PRESENT:
            await solver.present(request)
        elif request.action == ACTION_CLEANUP:
            await solver.clean_up(request)
        else:
            return _failure(request.uid, f"unsupported action {request.action!r}", "BadRequest", 400)
    except ChallengeError as exc:
        return _failure(request.uid, str(exc), exc.stage, 500)
    except SolverError as exc:
        return _failure(request.uid, str(exc), type(exc).__name__, 500)
    except Exception as exc:
        # NOTE: cert-manager only reads response.success; an HTTP 500 would
        # hide the message from the Challenge status.
        logger.exception("Unexpected error during %s for %s", request.action, request.resolved_fqdn)
        return _failure(request.uid, f"internal error: {exc}", "InternalError", 500)

    logger.info("%s succeeded for %s", request.action, request.resolved_fqdn)
    return ChallengePayload(response=ChallengeResponse(uid=request.uid, success=True))


def _failure(uid: str, message: str, reason: str, code: int) -> ChallengePayload:
    logger.warning("Challenge %s failed: %s", uid or "(no uid)", message)
    return ChallengePayload(
        response=ChallengeResponse(
            uid=uid,
            success=False,
            status=ChallengeStatus(message=message, reason=reason, code=code),
        )
    )
