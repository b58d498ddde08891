"""Shared Firestore client helper."""
from __future__ import annotations

_firestore_client = None


def get_firestore_client():
    """Return a cached Firestore client instance.

    Credentials come from the ambient Google environment
    (GOOGLE_APPLICATION_CREDENTIALS or the runtime service account).
    """

    global _firestore_client
    if _firestore_client is not None:
        return _firestore_client

    import firebase_admin
    from firebase_admin import firestore

    if not firebase_admin._apps:
        firebase_admin.initialize_app()
    _firestore_client = firestore.client()
    return _firestore_client
