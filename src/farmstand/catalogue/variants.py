"""Typed variant configuration for products.

Products store their variant configuration as JSON text. It is parsed into
these models at the aggregate boundary so business logic never handles loose
dictionaries. Input accepts both the stored snake_case keys and the camelCase
keys the admin editor sends.
"""

import json
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as SchemaValidationError


class StockManagement(Enum):
    NONE = "none"
    INDIVIDUAL = "individual"
    SHARED = "shared"  # Legacy value, contributes no stock constraint


class VariantConfigError(ValueError):
    """Variant configuration could not be parsed or is inconsistent."""


class VariantOption(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    value: str
    price_adjustment: int = Field(default=0, alias="priceAdjustment")
    stock: int | None = Field(default=None, ge=0)


class VariantType(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    stock_management: StockManagement = Field(default=StockManagement.NONE, alias="stockManagement")
    shared_stock: int | None = Field(default=None, alias="sharedStock", ge=0)
    options: list[VariantOption] = Field(default_factory=list)

    @model_validator(mode="after")
    def option_ids_must_be_unique(self):
        ids = [option.id for option in self.options]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Variant type '{self.id}' has duplicate option ids")
        return self

    def option(self, option_id: str) -> VariantOption | None:
        return next((o for o in self.options if o.id == option_id), None)


_VARIANT_TYPES = TypeAdapter(list[VariantType])


def parse_variants_config(raw) -> list[VariantType]:
    """Parse stored (JSON text) or submitted (list) variant configuration."""
    if raw in (None, "", []):
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise VariantConfigError(f"Variant configuration is not valid JSON: {exc.msg}") from None

    try:
        types = _VARIANT_TYPES.validate_python(raw)
    except SchemaValidationError as exc:
        raise VariantConfigError(str(exc)) from None

    ids = [vt.id for vt in types]
    if len(ids) != len(set(ids)):
        raise VariantConfigError("Variant type ids must be unique")
    return types


def dump_variants_config(types: list[VariantType]) -> str:
    return json.dumps([vt.model_dump(mode="json") for vt in types], ensure_ascii=False)


def legacy_variant_types(values: list[str]) -> list[VariantType]:
    """Migrate the old flat list of variant labels to a single untracked variant type."""
    return [
        VariantType(
            id="type",
            name="Type",
            stock_management=StockManagement.NONE,
            options=[VariantOption(id=value, value=value) for value in values],
        )
    ]
