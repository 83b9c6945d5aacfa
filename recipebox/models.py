import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .db import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ingredient(Base):
    __tablename__ = "ingredients"
    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(200), unique=True, index=True, nullable=False)


class Category(Base):
    __tablename__ = "categories"
    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(100), unique=True, index=True, nullable=False)


class Recipe(Base):
    __tablename__ = "recipes"
    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(String(300), index=True, nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=False)  # newline separated steps
    image_url = Column(String(500), nullable=True)
    user_id = Column(String(64), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    ingredients = relationship(
        "RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan"
    )
    categories = relationship(
        "RecipeCategory", back_populates="recipe", cascade="all, delete-orphan"
    )


class RecipeIngredient(Base):
    """Ingredient line of a recipe. The same ingredient may appear twice."""

    __tablename__ = "recipe_ingredients"
    id = Column(String(32), primary_key=True, default=_new_id)
    recipe_id = Column(
        String(32), ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    ingredient_id = Column(
        String(32), ForeignKey("ingredients.id", ondelete="CASCADE"), index=True, nullable=False
    )
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient")


class RecipeCategory(Base):
    __tablename__ = "recipe_categories"
    id = Column(String(32), primary_key=True, default=_new_id)
    recipe_id = Column(
        String(32), ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    category_id = Column(
        String(32), ForeignKey("categories.id", ondelete="CASCADE"), index=True, nullable=False
    )

    recipe = relationship("Recipe", back_populates="categories")
    category = relationship("Category")


class ShoppingList(Base):
    __tablename__ = "shopping_lists"
    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    user_id = Column(String(64), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    items = relationship(
        "ShoppingListItem", back_populates="shopping_list", cascade="all, delete-orphan"
    )


class ShoppingListItem(Base):
    __tablename__ = "shopping_list_items"
    id = Column(String(32), primary_key=True, default=_new_id)
    shopping_list_id = Column(
        String(32), ForeignKey("shopping_lists.id", ondelete="CASCADE"), index=True, nullable=False
    )
    ingredient_id = Column(
        String(32), ForeignKey("ingredients.id", ondelete="CASCADE"), index=True, nullable=False
    )
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    purchased = Column(Boolean, default=False, nullable=False)

    shopping_list = relationship("ShoppingList", back_populates="items")
    ingredient = relationship("Ingredient")
