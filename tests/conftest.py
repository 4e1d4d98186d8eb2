"""Test-wide environment. Runs before any app module reads settings."""

import os

os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production-use-only")
os.environ.setdefault("BCRYPT_ROUNDS", "10")
os.environ.setdefault("CLIENT_URL", "http://localhost:5173")
