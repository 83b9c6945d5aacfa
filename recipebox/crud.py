import logging
import math
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .errors import Conflict, InvalidQuery, NotFound

logger = logging.getLogger("recipebox.crud")

# Attempts at resolving a name whose insert lost a race to another writer.
UPSERT_ATTEMPTS = 3

# Largest OFFSET the database accepts (signed 64-bit).
MAX_OFFSET = 2 ** 63 - 1


@contextmanager
def atomic(db: Session):
    """Commit everything done in the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# Ingredient / category registry

def find_by_name(db: Session, model, name: str):
    return db.execute(select(model).where(model.name == name)).scalar_one_or_none()


def get_or_create_by_name(db: Session, model, name: str):
    """Return the ``model`` row called ``name``, inserting it if absent.

    The insert runs in a SAVEPOINT; when the unique constraint reports that
    another transaction created the name first, only the savepoint is rolled
    back and the lookup is retried.
    """
    for _ in range(UPSERT_ATTEMPTS):
        obj = find_by_name(db, model, name)
        if obj is not None:
            return obj
        try:
            with db.begin_nested():
                obj = model(name=name)
                db.add(obj)
            return obj
        except IntegrityError:
            logger.warning("%s %r was created concurrently, retrying lookup", model.__name__, name)
    raise Conflict(f"Could not resolve {model.__name__.lower()} '{name}'")


def _resolve_names(db: Session, model, names: Iterable[str]) -> Dict[str, object]:
    resolved = {}
    for name in names:
        if name not in resolved:
            resolved[name] = get_or_create_by_name(db, model, name)
    return resolved


def list_ingredients(db: Session) -> List[models.Ingredient]:
    return list(db.execute(select(models.Ingredient).order_by(models.Ingredient.name)).scalars())


def list_categories(db: Session) -> List[models.Category]:
    return list(db.execute(select(models.Category).order_by(models.Category.name)).scalars())


def get_ingredient(db: Session, ingredient_id: str) -> models.Ingredient:
    ingredient = db.get(models.Ingredient, ingredient_id)
    if ingredient is None:
        raise NotFound("Ingredient not found")
    return ingredient


def create_ingredient(db: Session, name: str) -> models.Ingredient:
    if find_by_name(db, models.Ingredient, name) is not None:
        raise Conflict("Ingredient already exists")
    ingredient = models.Ingredient(name=name)
    try:
        with atomic(db):
            db.add(ingredient)
    except IntegrityError:
        raise Conflict("Ingredient already exists")
    logger.info("created ingredient %s (%s)", ingredient.id, name)
    return ingredient


def rename_ingredient(db: Session, ingredient_id: str, name: str) -> models.Ingredient:
    try:
        with atomic(db):
            ingredient = get_ingredient(db, ingredient_id)
            ingredient.name = name
            db.flush()
    except IntegrityError:
        raise Conflict("Ingredient name already exists")
    return ingredient


def delete_ingredient(db: Session, ingredient_id: str) -> None:
    """Remove an ingredient together with every line that references it."""
    with atomic(db):
        ingredient = get_ingredient(db, ingredient_id)
        db.execute(
            delete(models.RecipeIngredient).where(
                models.RecipeIngredient.ingredient_id == ingredient_id
            )
        )
        db.execute(
            delete(models.ShoppingListItem).where(
                models.ShoppingListItem.ingredient_id == ingredient_id
            )
        )
        db.delete(ingredient)
    logger.info("deleted ingredient %s", ingredient_id)


# Recipes: queries

def _recipe_select():
    return select(models.Recipe).options(
        selectinload(models.Recipe.ingredients).selectinload(models.RecipeIngredient.ingredient),
        selectinload(models.Recipe.categories).selectinload(models.RecipeCategory.category),
    )


def _recipe_filters(search: Optional[str] = None, category: Optional[str] = None) -> list:
    """Build the WHERE clauses for a recipe listing.

    ``search`` is plain substring containment on title or description, so its
    case sensitivity is whatever the backend's ``LIKE`` does (insensitive for
    ASCII on SQLite, sensitive on PostgreSQL). ``category`` must equal a
    category name exactly. Both together are ANDed.
    """
    filters = []
    if search:
        filters.append(
            or_(
                models.Recipe.title.contains(search, autoescape=True),
                models.Recipe.description.contains(search, autoescape=True),
            )
        )
    if category:
        filters.append(
            models.Recipe.categories.any(
                models.RecipeCategory.category.has(models.Category.name == category)
            )
        )
    return filters


def count_recipes(db: Session, search: Optional[str] = None, category: Optional[str] = None) -> int:
    stmt = select(func.count()).select_from(models.Recipe).where(*_recipe_filters(search, category))
    return db.execute(stmt).scalar_one()


def get_recipes(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> List[models.Recipe]:
    stmt = (
        _recipe_select()
        .where(*_recipe_filters(search, category))
        .order_by(models.Recipe.created_at.desc(), models.Recipe.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())


def page_info(total: int, page: int, limit: int) -> schemas.Pagination:
    # an empty result has zero pages, not one
    return schemas.Pagination(
        total=total, pages=math.ceil(total / limit), current_page=page, limit=limit
    )


def list_recipes(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> Tuple[List[models.Recipe], schemas.Pagination]:
    details = [
        {"field": field, "message": "Must be a positive integer"}
        for field, value in (("page", page), ("limit", limit))
        if value < 1
    ]
    if details:
        raise InvalidQuery(details=details)
    if (page - 1) * limit > MAX_OFFSET:
        raise InvalidQuery(details=[{"field": "page", "message": "Page is out of range"}])
    total = count_recipes(db, search=search, category=category)
    recipes = get_recipes(
        db, skip=(page - 1) * limit, limit=limit, search=search, category=category
    )
    return recipes, page_info(total, page, limit)


def get_recipe(db: Session, recipe_id: str) -> models.Recipe:
    recipe = db.execute(_recipe_select().where(models.Recipe.id == recipe_id)).scalar_one_or_none()
    if recipe is None:
        raise NotFound("Recipe not found")
    return recipe


def get_recipe_by_title(db: Session, title: str) -> Optional[models.Recipe]:
    return db.execute(
        select(models.Recipe).where(models.Recipe.title == title).limit(1)
    ).scalar_one_or_none()


# Recipes: writes

def _apply_recipe(db: Session, db_recipe: models.Recipe, recipe: schemas.RecipeCreate) -> None:
    ingredients = _resolve_names(db, models.Ingredient, (i.ingredient.name for i in recipe.ingredients))
    categories = _resolve_names(db, models.Category, (c.category.name for c in recipe.categories))

    db_recipe.title = recipe.title
    db_recipe.description = recipe.description
    db_recipe.instructions = recipe.instructions
    db_recipe.image_url = recipe.image_url
    db_recipe.ingredients = [
        models.RecipeIngredient(
            quantity=line.quantity, unit=line.unit, ingredient=ingredients[line.ingredient.name]
        )
        for line in recipe.ingredients
    ]
    db_recipe.categories = [
        models.RecipeCategory(category=categories[c.category.name]) for c in recipe.categories
    ]


def create_recipe(db: Session, recipe: schemas.RecipeCreate, user_id: Optional[str] = None) -> models.Recipe:
    with atomic(db):
        db_recipe = models.Recipe(user_id=user_id)
        _apply_recipe(db, db_recipe, recipe)
        db.add(db_recipe)
    logger.info("created recipe %s (%r)", db_recipe.id, recipe.title)
    return get_recipe(db, db_recipe.id)


def update_recipe(db: Session, recipe_id: str, recipe: schemas.RecipeCreate) -> models.Recipe:
    """Replace a recipe's fields and all of its ingredient/category lines.

    The recipe row is locked first, then every join row stored for it is
    deleted and the new ones are created, all in one transaction. A second
    update waits on the lock and replaces what the first one committed; any
    failure leaves the stored recipe untouched.
    """
    with atomic(db):
        # write before reading so SQLite takes its write lock up front
        touched = db.execute(
            update(models.Recipe)
            .where(models.Recipe.id == recipe_id)
            .values(updated_at=models.utcnow())
            .execution_options(synchronize_session=False)
        )
        if touched.rowcount == 0:
            raise NotFound("Recipe not found")
        db.execute(delete(models.RecipeIngredient).where(models.RecipeIngredient.recipe_id == recipe_id))
        db.execute(delete(models.RecipeCategory).where(models.RecipeCategory.recipe_id == recipe_id))
        db_recipe = db.execute(
            _recipe_select()
            .where(models.Recipe.id == recipe_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()
        _apply_recipe(db, db_recipe, recipe)
    logger.info("updated recipe %s", recipe_id)
    return get_recipe(db, recipe_id)


def delete_recipe(db: Session, recipe_id: str) -> None:
    with atomic(db):
        db_recipe = get_recipe(db, recipe_id)
        # lines go with the recipe; ingredients and categories are shared
        db.delete(db_recipe)
    logger.info("deleted recipe %s", recipe_id)


# Shopping lists. Every lookup is scoped to the owner; another user's list
# is reported as missing.

def _shopping_list_select():
    return select(models.ShoppingList).options(
        selectinload(models.ShoppingList.items).selectinload(models.ShoppingListItem.ingredient)
    )


def list_shopping_lists(db: Session, user_id: str) -> List[models.ShoppingList]:
    stmt = (
        _shopping_list_select()
        .where(models.ShoppingList.user_id == user_id)
        .order_by(models.ShoppingList.created_at.desc(), models.ShoppingList.id.desc())
    )
    return list(db.execute(stmt).scalars())


def get_shopping_list(db: Session, list_id: str, user_id: str) -> models.ShoppingList:
    stmt = _shopping_list_select().where(
        models.ShoppingList.id == list_id, models.ShoppingList.user_id == user_id
    )
    shopping_list = db.execute(stmt).scalar_one_or_none()
    if shopping_list is None:
        raise NotFound("Shopping list not found")
    return shopping_list


def _apply_items(db: Session, shopping_list: models.ShoppingList, items: List[schemas.ShoppingListItemIn]) -> None:
    ingredients = _resolve_names(db, models.Ingredient, (item.ingredient_name for item in items))
    shopping_list.items = [
        models.ShoppingListItem(
            quantity=item.quantity,
            unit=item.unit,
            purchased=item.purchased,
            ingredient=ingredients[item.ingredient_name],
        )
        for item in items
    ]


def create_shopping_list(db: Session, payload: schemas.ShoppingListCreate, user_id: str) -> models.ShoppingList:
    with atomic(db):
        shopping_list = models.ShoppingList(name=payload.name, user_id=user_id)
        _apply_items(db, shopping_list, payload.items)
        db.add(shopping_list)
    logger.info("created shopping list %s for user %s", shopping_list.id, user_id)
    return get_shopping_list(db, shopping_list.id, user_id)


def update_shopping_list(
    db: Session, list_id: str, payload: schemas.ShoppingListCreate, user_id: str
) -> models.ShoppingList:
    with atomic(db):
        shopping_list = get_shopping_list(db, list_id, user_id)
        shopping_list.items.clear()
        db.flush()
        shopping_list.name = payload.name
        _apply_items(db, shopping_list, payload.items)
    logger.info("updated shopping list %s", list_id)
    return get_shopping_list(db, list_id, user_id)


def delete_shopping_list(db: Session, list_id: str, user_id: str) -> None:
    with atomic(db):
        shopping_list = get_shopping_list(db, list_id, user_id)
        db.delete(shopping_list)
    logger.info("deleted shopping list %s", list_id)


def set_item_purchased(
    db: Session, list_id: str, item_id: str, purchased: bool, user_id: str
) -> models.ShoppingListItem:
    stmt = (
        select(models.ShoppingListItem)
        .join(models.ShoppingList)
        .options(selectinload(models.ShoppingListItem.ingredient))
        .where(
            models.ShoppingListItem.id == item_id,
            models.ShoppingListItem.shopping_list_id == list_id,
            models.ShoppingList.user_id == user_id,
        )
    )
    with atomic(db):
        item = db.execute(stmt).scalar_one_or_none()
        if item is None:
            raise NotFound("Item not found")
        item.purchased = purchased
    db.refresh(item)
    return item
