"""
Dealership inventory: cars for sale, rental fleet and parts.

Nothing is seeded; every item is added through the admin panel.
"""

from typing import Dict, List, Optional

from loguru import logger

import database
from database import CARS, PARTS, RENTAL_CARS, create_document, get_document, get_documents, new_id


def _add(collection_name: str, prefix: str, item: Dict, default_status: str) -> Dict:
    doc = {k: v for k, v in item.items() if v is not None}
    doc["status"] = item.get("status") or default_status
    item_id = create_document(collection_name, doc, doc_id=new_id(prefix))
    logger.info(f"Added {collection_name} {item_id}")
    return get_document(collection_name, item_id)


def _update(collection_name: str, item_id: str, updates: Dict) -> bool:
    ok = database.update_document(collection_name, item_id, updates)
    if not ok:
        logger.warning(f"{collection_name} {item_id} not found for update")
    return ok


# Cars for sale

def get_cars() -> List[Dict]:
    return get_documents(CARS)


def get_car(car_id: str) -> Optional[Dict]:
    return get_document(CARS, car_id)


def add_car(car: Dict) -> Dict:
    return _add(CARS, "CAR", car, "available")


def update_car(car_id: str, updates: Dict) -> bool:
    return _update(CARS, car_id, updates)


def delete_car(car_id: str) -> bool:
    return database.delete_document(CARS, car_id)


# Rental fleet

def get_rental_cars() -> List[Dict]:
    return get_documents(RENTAL_CARS)


def get_rental_car(car_id: str) -> Optional[Dict]:
    return get_document(RENTAL_CARS, car_id)


def add_rental_car(car: Dict) -> Dict:
    car = dict(car)
    car["seats"] = car.get("seats") or 2
    return _add(RENTAL_CARS, "RENT", car, "available")


def update_rental_car(car_id: str, updates: Dict) -> bool:
    return _update(RENTAL_CARS, car_id, updates)


def delete_rental_car(car_id: str) -> bool:
    return database.delete_document(RENTAL_CARS, car_id)


# Parts

def get_parts() -> List[Dict]:
    return get_documents(PARTS)


def get_part(part_id: str) -> Optional[Dict]:
    return get_document(PARTS, part_id)


def add_part(part: Dict) -> Dict:
    part = dict(part)
    part["quantity"] = part.get("quantity") or 1
    return _add(PARTS, "PART", part, "in-stock")


def update_part(part_id: str, updates: Dict) -> bool:
    """Merge `updates` into a part, keeping quantity in line with the stock status."""
    updates = dict(updates)
    status = updates.get("status")
    if status == "low-stock":
        stock_left = updates.get("stock_left")
        if stock_left and stock_left > 0:
            updates["quantity"] = stock_left
        updates["stock_left"] = updates.get("quantity")
    elif status == "out-of-stock":
        updates["quantity"] = 0
        updates["stock_left"] = None
    elif status is not None:
        updates["stock_left"] = None
    return _update(PARTS, part_id, updates)


def delete_part(part_id: str) -> bool:
    return database.delete_document(PARTS, part_id)
