from datetime import datetime
from typing import List, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel


_URL = TypeAdapter(AnyUrl)


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# Recipe payloads. The same models are published as JSON Schema so the
# browser form validates against the definition the API enforces.

class IngredientRef(CamelModel):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Garlic"})


class CategoryRef(CamelModel):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Main Course"})


class RecipeIngredientIn(CamelModel):
    quantity: float = Field(..., ge=0, json_schema_extra={"example": 2})
    unit: str = Field(..., min_length=1, json_schema_extra={"example": "cloves"})
    ingredient: IngredientRef


class RecipeCategoryIn(CamelModel):
    category: CategoryRef


class RecipeBase(CamelModel):
    title: str = Field(
        ..., min_length=1, json_schema_extra={"example": "Simple Tomato Pasta"}
    )
    description: Optional[str] = Field(
        None, json_schema_extra={"example": "A quick pasta with fresh tomatoes"}
    )
    instructions: str = Field(
        ...,
        min_length=1,
        json_schema_extra={"example": "1. Boil pasta\n2. Saute garlic\n3. Toss together"},
    )
    image_url: Optional[str] = Field(None, json_schema_extra={"format": "uri"})

    @field_validator("image_url")
    @classmethod
    def _check_image_url(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            _URL.validate_python(value)
        except ValidationError:
            raise ValueError("Invalid URL format") from None
        return value


class RecipeCreate(RecipeBase):
    ingredients: List[RecipeIngredientIn] = Field(..., min_length=1)
    categories: List[RecipeCategoryIn] = Field(..., min_length=1)


# Read models, built from ORM rows.

class Ingredient(CamelModel):
    id: str
    name: str


class Category(CamelModel):
    id: str
    name: str


class RecipeIngredient(CamelModel):
    id: str
    quantity: float
    unit: str
    ingredient: Ingredient


class RecipeCategory(CamelModel):
    category: Category


class Recipe(RecipeBase):
    id: str
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    ingredients: List[RecipeIngredient]
    categories: List[RecipeCategory]


class Pagination(CamelModel):
    total: int
    pages: int
    current_page: int
    limit: int


class RecipePage(CamelModel):
    recipes: List[Recipe]
    pagination: Pagination


class IngredientCreate(CamelModel):
    name: str = Field(..., min_length=1)


# Shopping lists

class ShoppingListItemIn(CamelModel):
    ingredient_name: str = Field(..., min_length=1, json_schema_extra={"example": "Tomato"})
    quantity: float = Field(..., ge=0)
    unit: str = Field(..., min_length=1)
    purchased: bool = False


class ShoppingListCreate(CamelModel):
    name: str = Field(..., min_length=1, json_schema_extra={"example": "Weekend groceries"})
    items: List[ShoppingListItemIn] = Field(default_factory=list)


class ShoppingListItem(CamelModel):
    id: str
    quantity: float
    unit: str
    purchased: bool
    ingredient: Ingredient


class ShoppingList(CamelModel):
    id: str
    name: str
    user_id: str
    created_at: datetime
    items: List[ShoppingListItem]


class PurchasedUpdate(CamelModel):
    purchased: bool
