"""
Seed a few demo dishes through the configured storage.

Usage
-----

    # default hard-coded trio
    python -m scripts.seed_dishes

    # custom list (same schema as POST /api/dishes) in a JSON file
    python -m scripts.seed_dishes --file path/to/dishes.json

With no database configured this only exercises the in-memory store,
which is gone once the script exits.
"""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, List

from api.schemas import DishIn
from config import get_settings
from core.models.dish import DishCreate
from services.storage import build_storage

# ────────────────────────────────────────────────────────────────────
_DEFAULT_DISHES: List[dict[str, Any]] = [
    {
        "name": "Oatmeal with berries",
        "mealType": "breakfast",
        "ingredients": [
            {"name": "oats", "quantity": "80", "unit": "g"},
            {"name": "milk", "quantity": "200", "unit": "ml"},
            {"name": "berries", "quantity": "100", "unit": "g"},
        ],
    },
    {
        "name": "Chicken soup",
        "mealType": "lunch",
        "ingredients": [
            {"name": "chicken", "quantity": "500", "unit": "g"},
            {"name": "carrot", "quantity": "2", "unit": "pcs"},
            {"name": "potato", "quantity": "4", "unit": "pcs"},
        ],
    },
    {
        "name": "Rice with meat",
        "mealType": "dinner",
        "ingredients": [
            {"name": "rice", "quantity": "300", "unit": "g"},
            {"name": "meat", "quantity": "400", "unit": "g"},
        ],
    },
]


async def _seed(dishes: list[dict[str, Any]]) -> None:
    store = await build_storage(get_settings())
    try:
        for raw in dishes:
            body = DishIn.model_validate(raw)
            dish = await store.create_dish(DishCreate(**body.model_dump()))
            print(f"✓ {dish.id}  {dish.name}")
    finally:
        await store.close()
    print(f"✓ inserted {len(dishes)} dishes ({store.backend} storage)")


def _load_json(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError("JSON file must contain a list of dish dictionaries")
    return data


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--file",
        type=Path,
        help="optional JSON file with dishes to seed (overrides defaults)",
    )
    args = parser.parse_args()

    dishes = _load_json(args.file) if args.file else _DEFAULT_DISHES
    asyncio.run(_seed(dishes))


if __name__ == "__main__":
    main()
