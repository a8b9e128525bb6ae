"""
Container Movements Cloud Functions
===================================
Serverless endpoints for the container movement history.

Functions:
1. movements_api - HTTP API + HTML history for the web app
"""

import firebase_admin
from firebase_admin import firestore
from firebase_functions import https_fn, options

from movements import config
from movements.api import route_request
from movements.history import MovementHistory
from movements.photo_overrides import JsonFilePhotoOverrides

# Initialize Firebase
firebase_admin.initialize_app()
db = None
history = None


def get_db():
    global db
    if db is None:
        db = firestore.client()
    return db


def get_history():
    """One mounted history (and one listener) per function instance."""
    global history
    if history is None:
        history = MovementHistory(get_db(), JsonFilePhotoOverrides(config.PHOTO_CACHE_PATH))
        history.mount()
        print(f"📦 Movement history mounted on '{config.COLLECTION_NAME}'")
    return history


# ============================================================
# FUNCTION 1: HTTP API FOR WEB APP
# ============================================================
@https_fn.on_request(cors=options.CorsOptions(cors_origins="*", cors_methods=["GET", "POST", "DELETE"]))
def movements_api(req: https_fn.Request) -> https_fn.Response:
    """Movement history API"""
    return route_request(req, get_history())

