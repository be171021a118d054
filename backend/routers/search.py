from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from core.config import Settings
from core.dependencies import get_repository, get_settings
from db.repository import InventoryItem, InventoryRepository
from schemas.inventory import SearchRequest

router = APIRouter()


async def _read_search_payload(request: Request) -> SearchRequest:
    content_type = request.headers.get("content-type", "").lower()
    if "application/json" in content_type:
        try:
            data = await request.json()
        except ValueError:
            data = {}
    else:
        form = await request.form()
        data = {k: v for k, v in form.items() if isinstance(v, str)}
    if not isinstance(data, dict):
        data = {}
    try:
        return SearchRequest.model_validate(data)
    except ValidationError:
        # an unusable id is a failed lookup, not a validation error
        return SearchRequest()


def search_result(item: InventoryItem, include_photo: bool, photo_mode: str) -> Dict:
    """Shape a search hit; photo fields only appear when asked for."""
    if include_photo:
        return item.to_schema

    result = {"id": item.id, "name": item.name, "description": item.description}
    if photo_mode == "annotate" and item.photo_url:
        result["description"] = f"{item.description} (photo: {item.photo_url})".lstrip()
    return result


@router.post("/search", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def search_item(
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Look an item up by id (form-encoded id and has_photo)"""
    payload = await _read_search_payload(request)
    item = await repo.get_by_id(payload.id) if payload.id is not None else None
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    return search_result(item, payload.has_photo, settings.search_photo_mode)
