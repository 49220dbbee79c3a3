"""FastAPI dependencies shared across session-scoped endpoints."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Response

from ratemyfit.services.session_registry import AnalysisSession, session_registry

SESSION_HEADER = "X-Session-Id"


async def get_session(
    response: Response,
    session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
) -> AnalysisSession:
    """
    Resolve the caller's analysis session, creating one when needed.
    The id is echoed back so clients can reuse it.
    """
    session = session_registry.get_or_create(session_id)
    response.headers[SESSION_HEADER] = session.session_id
    return session


async def find_session(
    response: Response,
    session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
) -> Optional[AnalysisSession]:
    """Resolve an existing session for read-only calls; never creates one."""
    session = session_registry.get(session_id)
    if session is not None:
        response.headers[SESSION_HEADER] = session.session_id
    return session


async def require_session(
    session: Optional[AnalysisSession] = Depends(find_session),
) -> AnalysisSession:
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
