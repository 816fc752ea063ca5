"""Storage boundaries used by the services."""

from app.repositories.credential_store import (
    CredentialStore,
    SqlAlchemyCredentialStore,
    transaction,
)

__all__ = ["CredentialStore", "SqlAlchemyCredentialStore", "transaction"]
