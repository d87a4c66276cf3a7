from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from svgforge.domain import GalleryItemType


class RemoteLog(BaseModel):
    level: str = "INFO"
    message: str
    timestamp: str | None = None


class QueuedUpdate(BaseModel):
    status: Literal["IN_QUEUE"] = "IN_QUEUE"
    queue_position: int | None = None


class InProgressUpdate(BaseModel):
    status: Literal["IN_PROGRESS"] = "IN_PROGRESS"
    logs: list[RemoteLog] | None = None


class CompletedUpdate(BaseModel):
    status: Literal["COMPLETED"] = "COMPLETED"
    logs: list[RemoteLog] | None = None


QueueUpdate = Annotated[
    Union[QueuedUpdate, InProgressUpdate, CompletedUpdate],
    Field(discriminator="status"),
]

queue_update_adapter: TypeAdapter[QueueUpdate] = TypeAdapter(QueueUpdate)


class RemoteImage(BaseModel):
    url: str
    width: int = 0
    height: int = 0
    content_type: str = "image/jpeg"


class GenerationResponse(BaseModel):
    images: list[RemoteImage] = Field(default_factory=list)
    seed: int | None = None
    prompt: str | None = None
    has_nsfw_concepts: list[bool] = Field(default_factory=list)


class RemoteFile(BaseModel):
    url: str
    content_type: str = "image/svg+xml"


class VectorizationResponse(BaseModel):
    image: RemoteFile | None = None


class GalleryItem(BaseModel):
    """A saved pipeline output. Owned by the gallery store, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: GalleryItemType
    url: str
    prompt: str
    created_at: datetime


gallery_items_adapter: TypeAdapter[list[GalleryItem]] = TypeAdapter(list[GalleryItem])
