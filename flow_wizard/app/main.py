import logging

from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from ..config import settings
from ..exceptions import UnknownFlow
from ..schemas.commands import CommandResult
from ..services.chat import ChatService
from ..services.exceptions import SessionNotFoundError
from .dependencies import get_chat_service
from .schemas import (
    ActiveFlow,
    ChooseRequest,
    CommandResponse,
    CreateSessionResponse,
    MessagesResponse,
    SelectFlowRequest,
    SessionRead,
    StepDataRequest,
    UserMessage,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Flow Wizard")


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(UnknownFlow)
async def unknown_flow_handler(request: Request, exc: UnknownFlow):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


def _respond(service: ChatService, session_id: str, result: CommandResult) -> CommandResponse:
    # Explicitly Map: CommandResult (Engine) -> CommandResponse (API)
    controller = service.get_session(session_id)
    return CommandResponse(
        **result.model_dump(),
        state=controller.get_state().value,
        current_step_id=controller.session.current_step_id,
    )

# --- Endpoints ---
# Handlers are async so the Session Clock schedules on the server's event loop.


@app.post(
    "/sessions",
    response_model=CreateSessionResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_session(
    service: ChatService = Depends(get_chat_service)
):
    """Starts a new session showing the welcome turn."""
    controller = service.create_session()
    session_id = controller.session.session_id
    return CreateSessionResponse(session_id=session_id, messages=service.get_messages(session_id))


@app.get("/sessions/{session_id}", response_model=SessionRead)
async def get_session(
    session_id: str,
    service: ChatService = Depends(get_chat_service)
):
    """Retrieves the session resource: state, active flow and progress."""
    summary = service.describe(session_id)
    active = summary["active_flow"]
    return SessionRead(
        session_id=summary["session_id"],
        state=summary["state"],
        epoch=summary["epoch"],
        active_flow=ActiveFlow(**active) if active else None,
        session_values=summary["session_values"],
        derived_values=summary["derived_values"],
    )


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    service: ChatService = Depends(get_chat_service)
):
    """
    Deletes a session and cancels its pending timers. Returns 204 No Content on success.
    """
    success = service.delete_session(session_id)
    if not success:
        raise HTTPException(status_code=404, detail="Session not found")

    # For 204, we must explicitly return a Response object with no content
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/sessions/{session_id}/messages", response_model=MessagesResponse)
async def get_messages(
    session_id: str,
    service: ChatService = Depends(get_chat_service)
):
    return MessagesResponse(session_id=session_id, messages=service.get_messages(session_id))


@app.post("/sessions/{session_id}/flows", response_model=CommandResponse)
async def select_flow(
    session_id: str,
    request: SelectFlowRequest,
    service: ChatService = Depends(get_chat_service)
):
    result = service.select_flow(session_id, request.flow_id)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/steps/{step_id}/submit", response_model=CommandResponse)
async def submit_step_data(
    session_id: str,
    step_id: str,
    request: StepDataRequest,
    service: ChatService = Depends(get_chat_service)
):
    result = service.submit_step_data(session_id, step_id, request.values)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/steps/{step_id}/derive", response_model=CommandResponse)
async def request_derivation(
    session_id: str,
    step_id: str,
    request: StepDataRequest,
    service: ChatService = Depends(get_chat_service)
):
    """Field-blur preview of derived values; never advances the flow."""
    result = service.request_derivation(session_id, step_id, request.values)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/steps/{step_id}/choose", response_model=CommandResponse)
async def choose(
    session_id: str,
    step_id: str,
    request: ChooseRequest,
    service: ChatService = Depends(get_chat_service)
):
    result = service.choose(session_id, step_id, request.option_id)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/steps/{step_id}/jump-back", response_model=CommandResponse)
async def jump_back(
    session_id: str,
    step_id: str,
    service: ChatService = Depends(get_chat_service)
):
    result = service.jump_back_to(session_id, step_id)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/messages", response_model=CommandResponse)
async def handle_message(
    session_id: str,
    message: UserMessage,
    service: ChatService = Depends(get_chat_service)
):
    """Free text: echoed now, interpreted after the typing delay."""
    result = service.send_free_text(session_id, message.text)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/actions/{action_id}", response_model=CommandResponse)
async def trigger_action(
    session_id: str,
    action_id: str,
    service: ChatService = Depends(get_chat_service)
):
    result = service.trigger_action(session_id, action_id)
    return _respond(service, session_id, result)


@app.post("/sessions/{session_id}/reset", response_model=CommandResponse)
async def reset(
    session_id: str,
    service: ChatService = Depends(get_chat_service)
):
    result = service.reset(session_id)
    return _respond(service, session_id, result)
