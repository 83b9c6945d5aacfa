import json
from pathlib import Path
from typing import List

from .schemas import RecipeCreate


def load_recipes(path) -> List[RecipeCreate]:
    """Load recipe payloads from a JSON file.

    Args:
        path (str or Path): JSON file holding a list of recipes in the API
            wire format.

    Returns:
        list: validated ``RecipeCreate`` payloads; empty if the file is missing.

    Raises:
        pydantic.ValidationError: if an entry is not a valid recipe.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return [RecipeCreate.model_validate(item) for item in data]
