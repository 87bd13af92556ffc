from flask import current_app

from models.db_storage import DBStorage, classes


def get_storage() -> DBStorage:
    """Return the DBStorage owned by the current application."""
    return current_app.extensions["storage"]


__all__ = ["DBStorage", "classes", "get_storage"]
