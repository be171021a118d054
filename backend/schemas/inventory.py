import re
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

# 32-bit integer primary key
MAX_ITEM_ID = 2**31 - 1

FALSY_FLAGS = {"", "0", "false", "off", "no"}

_ITEM_ID_RE = re.compile(r"[0-9]+")


def parse_item_id(raw) -> Optional[int]:
    """Parse an id from a path/form value; anything unusable is simply not found."""
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip()
    # plain ASCII digits only: no sign, no underscores, no other scripts
    if not _ITEM_ID_RE.fullmatch(text):
        return None
    value = int(text)
    if value < 1 or value > MAX_ITEM_ID:
        return None
    return value


class InventoryItemRead(BaseModel):
    id: int
    name: str
    description: str = ""
    photo_filename: Optional[str] = None
    photo: Optional[str] = None


class InventoryItemCreate(BaseModel):
    name: str = Field(validation_alias=AliasChoices("name", "inventory_name"))
    description: str = ""

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, v):
        return "" if v is None else v


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "inventory_name"))
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class SearchRequest(BaseModel):
    id: Optional[int] = None
    has_photo: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _parse_id(cls, v):
        return parse_item_id(v)

    @field_validator("has_photo", mode="before")
    @classmethod
    def _parse_flag(cls, v) -> bool:
        if v is None:
            return False
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() not in FALSY_FLAGS


class MessageResponse(BaseModel):
    message: str
