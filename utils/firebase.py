import os
import firebase_admin
from firebase_admin import auth as firebase_auth, credentials
from fastapi import status
from starlette.concurrency import run_in_threadpool
import logging

from utils.app_error import AppError

logger = logging.getLogger(__name__)

_app = None

def get_firebase_app():
    """Initialize the Firebase Admin SDK on first use"""
    global _app
    if _app is not None:
        return _app

    if not os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        logger.warning("GOOGLE_APPLICATION_CREDENTIALS is not set")

    try:
        _app = firebase_admin.initialize_app(credentials.ApplicationDefault())
        logger.info("Firebase Admin SDK initialized successfully")
    except ValueError:
        # Already initialized elsewhere in this process
        _app = firebase_admin.get_app()
    except Exception as e:
        logger.error(f"Firebase Admin SDK initialization failed: {str(e)}")
        raise AppError("Google sign-in is not available right now.", status.HTTP_503_SERVICE_UNAVAILABLE)
    return _app

async def verify_google_token(id_token: str) -> dict:
    """Verify a Firebase ID token and return its claims"""
    app = get_firebase_app()
    try:
        return await run_in_threadpool(firebase_auth.verify_id_token, id_token, app)
    except Exception as e:
        logger.warning(f"Firebase ID token verification failed: {str(e)}")
        raise AppError("Invalid or expired Google token.", status.HTTP_401_UNAUTHORIZED)
