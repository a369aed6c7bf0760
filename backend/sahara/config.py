# backend/sahara/config.py
from __future__ import annotations
import os


class Config:
    # Signs the session cookie; SESSION_SECRET is the deployment name for it
    SECRET_KEY = os.environ.get("SESSION_SECRET", "dev-secret-key-change-me")

    # PostgreSQL in production, local SQLite file otherwise
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///sahara.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
    STRIPE_CURRENCY = os.environ.get("STRIPE_CURRENCY", "usd")

    # Passed through to the frontend integrations; the API itself never calls them
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
    GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY")

    ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]
