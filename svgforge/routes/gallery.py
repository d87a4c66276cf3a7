from __future__ import annotations

from fastapi import APIRouter, HTTPException

from svgforge.application import get_pipeline_coordinator

router = APIRouter(prefix="/gallery", tags=["gallery"])


@router.get("")
async def list_gallery() -> dict:
    gallery = get_pipeline_coordinator().gallery
    items = [item.model_dump(mode="json") for item in gallery.list()]
    return {"items": items, "capacity": gallery.capacity}


@router.get("/{item_id}")
async def get_gallery_item(item_id: str) -> dict:
    item = get_pipeline_coordinator().gallery.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="gallery item not found")
    return item.model_dump(mode="json")


@router.delete("/{item_id}")
async def remove_gallery_item(item_id: str) -> dict:
    gallery = get_pipeline_coordinator().gallery
    if gallery.get(item_id) is None:
        raise HTTPException(status_code=404, detail="gallery item not found")
    gallery.remove(item_id)
    return {"removed": item_id}


@router.delete("")
async def clear_gallery() -> dict:
    get_pipeline_coordinator().gallery.clear()
    return {"items": []}
