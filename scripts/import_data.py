from pathlib import Path

from recipebox import crud
from recipebox.config import Settings
from recipebox.db import init_db, make_engine, make_session_factory
from recipebox.recipes import load_recipes


def main():
    settings = Settings()
    engine = make_engine(settings.database_url)
    init_db(engine)
    p = Path(__file__).resolve().parents[1] / 'data' / 'recipes.json'
    if not p.exists():
        print('data/recipes.json not found')
        return
    db = make_session_factory(engine)()
    added = 0
    try:
        for recipe in load_recipes(p):
            if crud.get_recipe_by_title(db, recipe.title) is not None:
                continue
            crud.create_recipe(db, recipe)
            added += 1
    finally:
        db.close()
    print(f'Imported {added} recipes')


if __name__ == '__main__':
    main()
