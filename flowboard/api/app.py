"""FastAPI web application for flowboard."""

import logging
from typing import Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status
from sqlalchemy.orm import Session

from flowboard.api.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ConnectivityRequest,
    LoginRequest,
    MoveRequest,
    MutationResponse,
    QuickAddRequest,
    SignUpRequest,
    StateUpdateRequest,
    SubtaskRequest,
    SubtaskToggleRequest,
    TaskCreateRequest,
    UndoResponse,
)
from flowboard.app.commands import Command
from flowboard.app.controller import TaskBoardController
from flowboard.app.state import ViewState
from flowboard.auth.dependencies import get_current_user
from flowboard.auth.identity import AuthResult, LocalIdentityProvider
from flowboard.auth.jwt import create_access_token
from flowboard.database.database import SessionLocal, init_db
from flowboard.engine.projections import BoardColumn, CalendarMonth
from flowboard.models.task import Task, TaskUpdate
from flowboard.models.user import User
from flowboard.sync.errors import InvalidTask, MutationResult, NotSignedIn, OfflineRejected
from flowboard.sync.local_store import LocalDocumentStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="flowboard API",
    description="Personal task board with realtime sync, drag-and-drop ordering and undo",
    version="0.1.0"
)


class ControllerRegistry:
    """One TaskBoardController per signed-in user, sharing a store and identity provider."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.store = LocalDocumentStore(session_factory)
        self.identity = LocalIdentityProvider(session_factory)
        self._controllers: Dict[str, TaskBoardController] = {}

    def new_controller(self) -> TaskBoardController:
        return TaskBoardController(self.store, self.identity)

    async def adopt(self, controller: TaskBoardController) -> None:
        """Register a freshly signed-in controller, replacing the user's previous one."""
        user_id = controller.state.user.id
        previous = self._controllers.get(user_id)
        if previous is not None and previous is not controller:
            await previous.session.stop()
        self._controllers[user_id] = controller

    async def controller_for(self, user: User) -> TaskBoardController:
        controller = self._controllers.get(user.id)
        if controller is None:
            controller = self.new_controller()
            await controller.attach(user)
            self._controllers[user.id] = controller
        return controller

    async def release(self, user_id: str) -> Optional[TaskBoardController]:
        controller = self._controllers.pop(user_id, None)
        if controller is not None:
            await controller.sign_out()
        return controller

    async def close(self) -> None:
        for controller in list(self._controllers.values()):
            await controller.session.stop()
        self._controllers.clear()


_registry: Optional[ControllerRegistry] = None


def get_registry() -> ControllerRegistry:
    """Process-wide registry (dependency for FastAPI)."""
    global _registry
    if _registry is None:
        init_db()
        _registry = ControllerRegistry(SessionLocal)
    return _registry


async def get_controller(
    current_user: User = Depends(get_current_user),
    registry: ControllerRegistry = Depends(get_registry),
) -> TaskBoardController:
    controller = await registry.controller_for(current_user)
    await controller.session.settle()
    return controller


_FAILURE_STATUS = {
    OfflineRejected: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvalidTask: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotSignedIn: status.HTTP_401_UNAUTHORIZED,
}


async def _settled(controller: TaskBoardController, result: MutationResult) -> MutationResponse:
    """Turn a mutation result into a response once the store echo has been applied."""
    if not result.ok:
        error = result.error
        raise HTTPException(
            status_code=_FAILURE_STATUS.get(type(error), status.HTTP_502_BAD_GATEWAY),
            detail={"error": type(error).__name__, "message": error.message, "retry": error.retry},
        )
    await controller.session.settle()
    task = controller.state.find_task(result.task_id) if result.task_id else None
    return MutationResponse(task_id=result.task_id, task=task)


def _auth_error(result: AuthResult, status_code: int = status.HTTP_400_BAD_REQUEST) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": result.code, "message": result.message})


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


# Auth

@app.post("/auth/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(request: SignUpRequest, registry: ControllerRegistry = Depends(get_registry)):
    controller = registry.new_controller()
    result = await controller.sign_up(request.email, request.password, request.display_name)
    if not result.ok:
        raise _auth_error(result)
    await registry.adopt(controller)
    return AuthResponse(access_token=create_access_token(result.user.id), user=result.user)


@app.post("/auth/login", response_model=AuthResponse)
async def login(request: LoginRequest, registry: ControllerRegistry = Depends(get_registry)):
    controller = registry.new_controller()
    result = await controller.sign_in(request.email, request.password)
    if not result.ok:
        raise _auth_error(result, status.HTTP_401_UNAUTHORIZED)
    await registry.adopt(controller)
    return AuthResponse(access_token=create_access_token(result.user.id), user=result.user)


@app.post("/auth/change-password")
async def change_password(
    request: ChangePasswordRequest,
    controller: TaskBoardController = Depends(get_controller),
):
    result = controller.change_password(request.current_password, request.new_password)
    if not result.ok:
        raise _auth_error(result)
    return {"message": result.message}


@app.post("/auth/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    registry: ControllerRegistry = Depends(get_registry),
):
    await registry.release(current_user.id)
    return {"message": "Signed out successfully"}


# Projections

@app.get("/board", response_model=List[BoardColumn])
async def get_board(controller: TaskBoardController = Depends(get_controller)):
    return controller.board()


@app.get("/list", response_model=List[Task])
async def get_list(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority_filter: Optional[str] = Query(None, alias="priority"),
    controller: TaskBoardController = Depends(get_controller),
):
    """List view; query filters are remembered like the filter dropdowns."""
    controller.set_filters(status=status_filter, priority=priority_filter)
    return controller.task_list()


@app.get("/calendar", response_model=CalendarMonth)
async def get_calendar(controller: TaskBoardController = Depends(get_controller)):
    return controller.calendar()


@app.post("/calendar/previous", response_model=CalendarMonth)
async def previous_month(controller: TaskBoardController = Depends(get_controller)):
    return controller.show_previous_month()


@app.post("/calendar/next", response_model=CalendarMonth)
async def next_month(controller: TaskBoardController = Depends(get_controller)):
    return controller.show_next_month()


@app.get("/state", response_model=ViewState)
async def get_state(controller: TaskBoardController = Depends(get_controller)):
    return controller.view_state()


@app.patch("/state", response_model=ViewState)
async def update_state(request: StateUpdateRequest, controller: TaskBoardController = Depends(get_controller)):
    if request.current_view is not None:
        controller.switch_view(request.current_view)
    if request.status_filter is not None or request.priority_filter is not None:
        controller.set_filters(status=request.status_filter, priority=request.priority_filter)
    if "selected_task_id" in request.model_fields_set:
        if request.selected_task_id and controller.select_task(request.selected_task_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
        if not request.selected_task_id:
            controller.select_task(None)
    return controller.view_state()


# Task mutations

@app.post("/tasks", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def create_task(request: TaskCreateRequest, controller: TaskBoardController = Depends(get_controller)):
    result = await controller.save_task(request.model_dump())
    return await _settled(controller, result)


@app.post("/tasks/quick-add", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def quick_add(request: QuickAddRequest, controller: TaskBoardController = Depends(get_controller)):
    if request.day is not None:
        result = await controller.quick_add_on_day(request.text, request.day)
    else:
        result = await controller.quick_add(request.text)
    return await _settled(controller, result)


@app.patch("/tasks/{task_id}", response_model=MutationResponse)
async def update_task(
    task_id: str,
    request: TaskUpdate,
    controller: TaskBoardController = Depends(get_controller),
):
    if controller.state.find_task(task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    result = await controller.save_task(request, task_id=task_id)
    return await _settled(controller, result)


@app.delete("/tasks/{task_id}", response_model=MutationResponse)
async def delete_task(task_id: str, controller: TaskBoardController = Depends(get_controller)):
    if controller.state.find_task(task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    result = await controller.delete_task(task_id)
    return await _settled(controller, result)


@app.post("/tasks/{task_id}/move", response_model=MutationResponse)
async def move_task(task_id: str, request: MoveRequest, controller: TaskBoardController = Depends(get_controller)):
    if controller.state.find_task(task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    result = await controller.move_task(task_id, request.status, request.index)
    return await _settled(controller, result)


@app.post("/tasks/{task_id}/subtasks", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def add_subtask(
    task_id: str,
    request: Optional[SubtaskRequest] = None,
    controller: TaskBoardController = Depends(get_controller),
):
    if controller.state.find_task(task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    result = await controller.add_subtask(task_id, request.text if request else None)
    return await _settled(controller, result)


@app.post("/tasks/{task_id}/toggle", response_model=MutationResponse)
async def toggle_subtask(
    task_id: str,
    request: SubtaskToggleRequest,
    controller: TaskBoardController = Depends(get_controller),
):
    if controller.state.find_task(task_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    result = await controller.toggle_subtask(task_id, request.done)
    return await _settled(controller, result)


@app.post("/undo", response_model=UndoResponse)
async def undo(controller: TaskBoardController = Depends(get_controller)):
    outcome = await controller.undo()
    await controller.session.settle()
    recent = controller.notifications.recent
    return UndoResponse(outcome=outcome.value, notification=recent[-1] if recent else None)


@app.post("/connectivity", response_model=ViewState)
async def set_connectivity(request: ConnectivityRequest, controller: TaskBoardController = Depends(get_controller)):
    controller.set_online(request.online)
    return controller.view_state()


# Command palette

@app.get("/commands", response_model=List[Command])
async def list_commands(
    search: Optional[str] = Query(None),
    controller: TaskBoardController = Depends(get_controller),
):
    return controller.commands(search)


@app.post("/commands/{command_id}", response_model=ViewState)
async def execute_command(command_id: str, controller: TaskBoardController = Depends(get_controller)):
    if await controller.execute_command(command_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Command not found")
    await controller.session.settle()
    return controller.view_state()
