import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from pydantic import ValidationError

from core.config import Settings
from core.dependencies import get_photo_store, get_repository, get_settings
from core.photo_store import PhotoStore, content_type_for, is_image_upload
from db.repository import InventoryItem, InventoryRepository
from schemas.inventory import (
    InventoryItemCreate,
    InventoryItemRead,
    InventoryItemUpdate,
    MessageResponse,
    parse_item_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()
register_router = APIRouter()


def _not_found(detail: str = "Item not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _validation_detail(e: ValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "body"
    if err.get("type") == "missing":
        return f"{field} is required"
    return err.get("msg", "invalid input").removeprefix("Value error, ")


async def _get_item_or_404(repo: InventoryRepository, raw_id: str) -> InventoryItem:
    item_id = parse_item_id(raw_id)
    item = await repo.get_by_id(item_id) if item_id is not None else None
    if not item:
        raise _not_found()
    return item


def _has_file(upload: Optional[UploadFile]) -> bool:
    # browsers submit an empty part with no filename when no file was chosen
    return upload is not None and bool(upload.filename)


async def _read_photo(upload: UploadFile, settings: Settings) -> bytes:
    if not is_image_upload(upload.content_type, upload.filename):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be an image")
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Photo file is empty")
    if len(data) > settings.max_photo_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Photo size must be at most {settings.max_photo_bytes} bytes",
        )
    return data


async def _read_update_payload(request: Request) -> InventoryItemUpdate:
    """Accept the update body either as JSON or as a form."""
    content_type = request.headers.get("content-type", "").lower()
    if "application/json" in content_type:
        raw = await request.body()
        try:
            data = json.loads(raw) if raw.strip() else {}
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed JSON body")
        if not isinstance(data, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="JSON body must be an object")
    elif "form" in content_type:
        form = await request.form()
        data = {k: v for k, v in form.items() if isinstance(v, str)}
    else:
        data = {}

    try:
        return InventoryItemUpdate.model_validate(data)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_validation_detail(e))


@register_router.post("/register", response_model=InventoryItemRead, status_code=status.HTTP_201_CREATED)
async def register_item(
    name: Optional[str] = Form(None),
    inventory_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
    photos: PhotoStore = Depends(get_photo_store),
    settings: Settings = Depends(get_settings),
):
    """Register a new inventory item (multipart form with optional photo)"""
    fields = {"description": description}
    if name is not None or inventory_name is not None:
        fields["name"] = name if name is not None else inventory_name
    try:
        payload = InventoryItemCreate.model_validate(fields)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_validation_detail(e))

    photo_filename = None
    if _has_file(photo):
        data = await _read_photo(photo, settings)
        photo_filename = await run_in_threadpool(photos.save, data, photo.filename)

    item_id = await repo.insert(payload.name, payload.description, photo_filename)
    item = InventoryItem(
        id=item_id,
        name=payload.name,
        description=payload.description,
        photo_filename=photo_filename,
    )
    logger.info("Registered item %s (%s)", item_id, payload.name)
    return InventoryItemRead(**item.to_schema)


@router.get("", response_model=List[InventoryItemRead])
async def list_items(repo: InventoryRepository = Depends(get_repository)):
    """List all inventory items ordered by id"""
    items = await repo.list_all()
    return [InventoryItemRead(**i.to_schema) for i in items]


@router.get("/{item_id}", response_model=InventoryItemRead)
async def get_item(item_id: str, repo: InventoryRepository = Depends(get_repository)):
    item = await _get_item_or_404(repo, item_id)
    return InventoryItemRead(**item.to_schema)


@router.put("/{item_id}", response_model=InventoryItemRead)
async def update_item(
    item_id: str,
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
):
    """Update name and/or description; omitted fields keep their values"""
    item = await _get_item_or_404(repo, item_id)
    payload = await _read_update_payload(request)

    updated = await repo.update_fields(item.id, name=payload.name, description=payload.description)
    if not updated:
        raise _not_found()
    return InventoryItemRead(**updated.to_schema)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_item(
    item_id: str,
    repo: InventoryRepository = Depends(get_repository),
    photos: PhotoStore = Depends(get_photo_store),
):
    item_id_int = parse_item_id(item_id)
    deleted = await repo.delete(item_id_int) if item_id_int is not None else None
    if not deleted:
        raise _not_found()

    if deleted.photo_filename:
        await run_in_threadpool(photos.remove, deleted.photo_filename)
    logger.info("Deleted item %s", deleted.id)
    return MessageResponse(message="Item deleted")


@router.get("/{item_id}/photo", response_class=FileResponse)
async def get_item_photo(
    item_id: str,
    repo: InventoryRepository = Depends(get_repository),
    photos: PhotoStore = Depends(get_photo_store),
):
    """Serve the item's photo bytes"""
    item_id_int = parse_item_id(item_id)
    item = await repo.get_by_id(item_id_int) if item_id_int is not None else None
    if not item or not item.photo_filename or not photos.exists(item.photo_filename):
        raise _not_found("Photo not found")
    return FileResponse(photos.path(item.photo_filename), media_type=content_type_for(item.photo_filename))


@router.put("/{item_id}/photo", response_model=InventoryItemRead)
async def replace_item_photo(
    item_id: str,
    photo: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
    photos: PhotoStore = Depends(get_photo_store),
    settings: Settings = Depends(get_settings),
):
    """Replace the item's photo; the previous file is removed"""
    item = await _get_item_or_404(repo, item_id)
    if not _has_file(photo):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="photo file is required")

    data = await _read_photo(photo, settings)
    new_filename = await run_in_threadpool(photos.save, data, photo.filename)

    updated = await repo.update_photo(item.id, new_filename)
    if not updated:
        # deleted while we were writing the file
        await run_in_threadpool(photos.remove, new_filename)
        raise _not_found()

    if item.photo_filename and item.photo_filename != new_filename:
        await run_in_threadpool(photos.remove, item.photo_filename)
    logger.info("Replaced photo of item %s", item.id)
    return InventoryItemRead(**updated.to_schema)
