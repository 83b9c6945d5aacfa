from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from . import crud, schemas
from .auth import CurrentUser, get_current_user, get_recipe_writer
from .config import Settings, get_settings
from .db import get_db
from .errors import InvalidQuery

router = APIRouter()


# Recipes

@router.get("/recipes", response_model=schemas.RecipePage)
def list_recipes(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if limit is None:
        limit = settings.default_page_size
    if limit > settings.max_page_size:
        raise InvalidQuery(
            details=[{"field": "limit", "message": f"Must be at most {settings.max_page_size}"}]
        )
    recipes, pagination = crud.list_recipes(
        db, page=page, limit=limit, search=search or None, category=category or None
    )
    return {"recipes": recipes, "pagination": pagination}


@router.get("/recipes/schema")
def recipe_schema():
    """JSON Schema of the recipe payload, for client-side form validation."""
    return schemas.RecipeCreate.model_json_schema(by_alias=True)


@router.get("/recipes/{recipe_id}", response_model=schemas.Recipe)
def get_recipe(recipe_id: str, db: Session = Depends(get_db)):
    return crud.get_recipe(db, recipe_id)


@router.post("/recipes", response_model=schemas.Recipe, status_code=201)
def create_recipe(
    recipe: schemas.RecipeCreate,
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_recipe_writer),
):
    return crud.create_recipe(db, recipe, user_id=user.id if user else None)


@router.put("/recipes/{recipe_id}", response_model=schemas.Recipe)
def update_recipe(
    recipe_id: str,
    recipe: schemas.RecipeCreate,
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_recipe_writer),
):
    return crud.update_recipe(db, recipe_id, recipe)


@router.delete("/recipes/{recipe_id}", status_code=204)
def delete_recipe(
    recipe_id: str,
    db: Session = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_recipe_writer),
):
    crud.delete_recipe(db, recipe_id)
    return Response(status_code=204)


# Ingredients and categories

@router.get("/ingredients", response_model=List[schemas.Ingredient])
def list_ingredients(db: Session = Depends(get_db)):
    return crud.list_ingredients(db)


@router.post("/ingredients", response_model=schemas.Ingredient, status_code=201)
def create_ingredient(
    payload: schemas.IngredientCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return crud.create_ingredient(db, payload.name)


@router.put("/ingredients/{ingredient_id}", response_model=schemas.Ingredient)
def rename_ingredient(
    ingredient_id: str,
    payload: schemas.IngredientCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return crud.rename_ingredient(db, ingredient_id, payload.name)


@router.delete("/ingredients/{ingredient_id}", status_code=204)
def delete_ingredient(
    ingredient_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    crud.delete_ingredient(db, ingredient_id)
    return Response(status_code=204)


@router.get("/categories", response_model=List[schemas.Category])
def list_categories(db: Session = Depends(get_db)):
    return crud.list_categories(db)


# Shopping lists, visible to their owner only

@router.get("/shopping-lists", response_model=List[schemas.ShoppingList])
def list_shopping_lists(
    db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)
):
    return crud.list_shopping_lists(db, user.id)


@router.post("/shopping-lists", response_model=schemas.ShoppingList, status_code=201)
def create_shopping_list(
    payload: schemas.ShoppingListCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return crud.create_shopping_list(db, payload, user.id)


@router.get("/shopping-lists/{list_id}", response_model=schemas.ShoppingList)
def get_shopping_list(
    list_id: str, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)
):
    return crud.get_shopping_list(db, list_id, user.id)


@router.put("/shopping-lists/{list_id}", response_model=schemas.ShoppingList)
def update_shopping_list(
    list_id: str,
    payload: schemas.ShoppingListCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return crud.update_shopping_list(db, list_id, payload, user.id)


@router.delete("/shopping-lists/{list_id}", status_code=204)
def delete_shopping_list(
    list_id: str, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)
):
    crud.delete_shopping_list(db, list_id, user.id)
    return Response(status_code=204)


@router.patch(
    "/shopping-lists/{list_id}/items/{item_id}", response_model=schemas.ShoppingListItem
)
def set_item_purchased(
    list_id: str,
    item_id: str,
    payload: schemas.PurchasedUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return crud.set_item_purchased(db, list_id, item_id, payload.purchased, user.id)
