from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .media import MediaReference


class Ingredient(BaseModel):
    name: str
    qty: float | None = None
    unit: str | None = None


class ItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    quantity: float = 1
    unit: str = "pcs"
    notes: str = ""
    expiry: datetime | None = None
    photo_uri: str | None = None


class ItemUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    quantity: float | None = None
    unit: str | None = None
    notes: str | None = None
    expiry: datetime | None = None


class ConsumeIn(BaseModel):
    qty: float = Field(gt=0)
    unit: str | None = None


class ItemOut(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str
    notes: str
    expiry: datetime | None = None
    photo: MediaReference
    added_at: datetime | None = None
    updated_at: datetime | None = None


class RecipeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    notes: str = ""
    ingredients: List[Ingredient] = []
    steps: List[str] = []
    servings: int | None = None
    is_favorite: bool = False
    photo_uri: str | None = None


class RecipeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    notes: str | None = None
    ingredients: Optional[List[Ingredient]] = None
    steps: Optional[List[str]] = None
    servings: int | None = None
    is_favorite: bool | None = None


class RecipeOut(BaseModel):
    id: str
    name: str
    notes: str
    ingredients: List[Ingredient]
    steps: List[str]
    servings: int | None = None
    is_favorite: bool
    photo: MediaReference
    added_at: datetime | None = None
    updated_at: datetime | None = None


class RewriteOut(BaseModel):
    recipe_id: str
    steps: List[str]


class UsageCreate(BaseModel):
    item_id: str | None = None
    name: str
    qty: float
    unit: str | None = None
    type: Literal["consumption", "note"] = "consumption"
    note: str | None = None
    previous_quantity: float | None = None
    new_quantity: float | None = None


class UsageOut(UsageCreate):
    id: str
    at: datetime | None = None


class ProfileUpdate(BaseModel):
    username: str | None = None
    photo_uri: str | None = None
    theme: Literal["light", "dark", "system"] | None = None


class ProfileOut(BaseModel):
    owner_id: str
    username: str | None = None
    theme: str | None = None
    photo: MediaReference
    updated_at: datetime | None = None


class LabelOut(BaseModel):
    name: str
    confidence: float | None = None


class LabelResultOut(BaseModel):
    primary: str | None = None
    labels: List[LabelOut] = []


class LabelRequest(BaseModel):
    image_b64: str
    mime_type: str = "image/jpeg"

    @field_validator("image_b64")
    @classmethod
    def strip_data_prefix(cls, v: str) -> str:
        # Accept "data:image/jpeg;base64,..." as well as a bare payload
        if v.startswith("data:") and "," in v:
            return v.split(",", 1)[1]
        return v


def item_out(record) -> ItemOut:
    return ItemOut(
        id=str(record.id),
        name=record.name,
        quantity=record.quantity,
        unit=record.unit,
        notes=record.notes or "",
        expiry=record.expiry,
        photo=MediaReference.from_record(record),
        added_at=record.added_at,
        updated_at=record.updated_at,
    )


def recipe_out(record) -> RecipeOut:
    return RecipeOut(
        id=str(record.id),
        name=record.name,
        notes=record.notes or "",
        ingredients=[Ingredient.model_validate(i) for i in (record.ingredients or []) if isinstance(i, dict)],
        steps=list(record.steps or []),
        servings=record.servings,
        is_favorite=record.is_favorite,
        photo=MediaReference.from_record(record),
        added_at=record.added_at,
        updated_at=record.updated_at,
    )


def usage_out(record) -> UsageOut:
    return UsageOut(
        id=str(record.id),
        item_id=record.item_id,
        name=record.name,
        qty=record.qty,
        unit=record.unit,
        type=record.type,
        note=record.note,
        previous_quantity=record.previous_quantity,
        new_quantity=record.new_quantity,
        at=record.at,
    )


def profile_out(record) -> ProfileOut:
    return ProfileOut(
        owner_id=record.id,
        username=record.username,
        theme=record.theme,
        photo=MediaReference.from_record(record),
        updated_at=record.updated_at,
    )


def label_result_out(result) -> LabelResultOut:
    if result is None:
        return LabelResultOut()
    return LabelResultOut(
        primary=result.primary,
        labels=[LabelOut(name=l.name, confidence=l.confidence) for l in result.labels],
    )
