"""
Firebase Admin initialization.
Single-source-of-truth Firestore client and Cloud Messaging handle for UrbanFix AI.
"""

import json
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, initialize_app, messaging

from app.core.settings import settings

logger = logging.getLogger(__name__)

db: Optional[firestore.Client] = None


def _initialize_app():
    """Initialize the default firebase_admin app once."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    if settings.FIREBASE_CREDENTIALS_PATH:
        cred_path = settings.FIREBASE_CREDENTIALS_PATH

        if not os.path.exists(cred_path):
            raise FileNotFoundError(
                f"Firebase credentials file not found: {cred_path}\n"
                f"Check FIREBASE_CREDENTIALS_PATH in your .env file.\n"
                f"Current working directory: {os.getcwd()}"
            )

        try:
            with open(cred_path, "r") as f:
                cred_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Firebase credentials file is not valid JSON: {e}\n"
                f"Please check the file at: {cred_path}"
            )

        required_fields = ["type", "project_id", "private_key", "client_email"]
        missing_fields = [field for field in required_fields if field not in cred_data]
        if missing_fields:
            raise ValueError(
                f"Firebase credentials file is missing required fields: {missing_fields}\n"
                f"Please download a fresh service account key from Firebase Console."
            )

        logger.info(f"[FIREBASE] Credentials file validated: {cred_path} (project {cred_data.get('project_id')})")
        app = initialize_app(credentials.Certificate(cred_path))
        logger.info("[FIREBASE] Admin SDK initialized with service account")
        return app

    logger.info("[FIREBASE] No credentials path set, using Application Default Credentials")
    return initialize_app()


def initialize_firestore() -> firestore.Client:
    global db

    if db is not None:
        return db

    try:
        _initialize_app()
        db = firestore.client()
        logger.info(f"[FIRESTORE] Using Firestore project: {settings.FIREBASE_PROJECT_ID or 'default'}")
        return db
    except FileNotFoundError as e:
        raise RuntimeError(
            f"Firestore initialization FAILED - Credentials file not found.\n{e}"
        )
    except ValueError as e:
        raise RuntimeError(
            f"Firestore initialization FAILED - Invalid credentials file.\n{e}\n"
            f"SOLUTION: Firebase Console > Project Settings > Service Accounts > Generate New Private Key"
        )
    except Exception as e:
        raise RuntimeError(
            f"Firestore initialization FAILED. Error: {e}\n"
            f"Please check your Firebase credentials and configuration."
        )


def get_db() -> firestore.Client:
    """
    Get the initialized Firestore client.

    Raises RuntimeError if Firestore cannot be initialized.
    """
    if db is None:
        initialize_firestore()
    return db


def get_messaging():
    """
    Return the firebase_admin messaging module bound to the default app,
    or None when push is disabled or the SDK cannot be initialized.
    """
    if not settings.PUSH_ENABLED:
        return None
    try:
        _initialize_app()
    except Exception as e:
        logger.warning(f"[FCM] Firebase Admin unavailable, push notifications disabled: {e}")
        return None
    return messaging
