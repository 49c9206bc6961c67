"""Undo action data models for flowboard.

Each action carries exactly what is needed to reverse the mutation it records.
"""

from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field

from flowboard.models.task import Task


class CreateAction(BaseModel):
    """A task was created; reversing deletes it."""
    kind: Literal["create"] = "create"
    task_id: str = Field(..., description="ID of the created task")


class UpdateAction(BaseModel):
    """A task was updated; reversing writes back the prior snapshot."""
    kind: Literal["update"] = "update"
    task_id: str = Field(..., description="ID of the updated task")
    previous: Task = Field(..., description="Full task snapshot taken before the update")


class DeleteAction(BaseModel):
    """A task and its subtasks were deleted; reversing re-creates them."""
    kind: Literal["delete"] = "delete"
    task: Task = Field(..., description="Snapshot of the deleted task")
    subtasks: List[Task] = Field(default_factory=list, description="Snapshots of its deleted subtasks")


UndoAction = Annotated[
    Union[CreateAction, UpdateAction, DeleteAction],
    Field(discriminator="kind"),
]
