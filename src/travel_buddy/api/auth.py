"""Authentication endpoints and bearer-token dependencies."""

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from travel_buddy.api.schemas import Credentials, FlowResponse, SessionResponse
from travel_buddy.containers import AppContainer
from travel_buddy.domain.flows import AppFlow
from travel_buddy.domain.models import Session
from travel_buddy.errors import AuthenticationError
from travel_buddy.services.flow_gate import FlowGate

router = APIRouter(tags=["auth"])


def get_container(request: Request) -> AppContainer:
    """Return the dependency container attached to the app."""
    return request.app.state.container


async def optional_session(
    authorization: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
) -> Session | None:
    """Resolve the bearer token, if one was sent."""
    return container.auth_service.session_for_token(_bearer_token(authorization))


async def require_session(
    session: Session | None = Depends(optional_session),
) -> Session:
    """Ensure requests carry a valid bearer token."""
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


@router.post("/auth/sign-up", status_code=status.HTTP_201_CREATED)
async def sign_up(
    credentials: Credentials, container: AppContainer = Depends(get_container)
) -> dict[str, object]:
    """Create an account."""
    try:
        session = container.auth_service.sign_up(
            credentials.email, credentials.password
        )
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return {
        "status": "created",
        "session": _session_response(session) if session else None,
    }


@router.post("/auth/sign-in")
async def sign_in(
    credentials: Credentials, container: AppContainer = Depends(get_container)
) -> SessionResponse:
    """Sign in with email and password."""
    try:
        session = container.auth_service.sign_in(
            credentials.email, credentials.password
        )
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
    return _session_response(session)


@router.post("/auth/sign-out")
async def sign_out(
    session: Session = Depends(require_session),
    container: AppContainer = Depends(get_container),
) -> dict[str, str]:
    """Revoke the bearer token's session."""
    try:
        container.auth_service.sign_out(session)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
    return {"status": "signed_out"}


@router.get("/me/flow")
async def current_flow(
    session: Session | None = Depends(optional_session),
    container: AppContainer = Depends(get_container),
) -> FlowResponse:
    """Return the top-level flow the client should mount."""
    return FlowResponse(flow=container.flow_gate.flow_for(session))


@router.get("/me/flow/stream")
async def stream_flow(
    session: Session | None = Depends(optional_session),
    container: AppContainer = Depends(get_container),
) -> StreamingResponse:
    """Stream the flow as server-sent events until the user signs out."""
    return StreamingResponse(
        flow_events(container.flow_gate, session), media_type="text/event-stream"
    )


async def flow_events(gate: FlowGate, session: Session | None) -> AsyncIterator[str]:
    """Yield an event for each flow change; ends after an ``auth`` event."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[AppFlow] = asyncio.Queue()

    def on_flow(flow: AppFlow) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, flow)

    last: AppFlow | None = None
    with gate.watch(session, on_flow):
        while True:
            flow = await queue.get()
            if flow != last:
                last = flow
                yield f"data: {FlowResponse(flow=flow).model_dump_json()}\n\n"
            if flow == AppFlow.AUTH:
                return


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        access_token=session.access_token,
    )
