"""Repositories: one per aggregate, constructed with the request's DB session.

Repositories add, flush and query; committing and rolling back is the caller's job.
"""

from app.repositories.credentials import CredentialRepository
from app.repositories.roles import RoleRepository
from app.repositories.users import UserRepository

__all__ = ["CredentialRepository", "RoleRepository", "UserRepository"]
