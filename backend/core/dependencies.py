from fastapi import Request

from core.config import Settings
from core.photo_store import PhotoStore
from db.repository import InventoryRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> InventoryRepository:
    return request.app.state.repository


def get_photo_store(request: Request) -> PhotoStore:
    return request.app.state.photo_store
