"""Dependency injection for repository layer."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..db.database import get_db
from .interfaces import RepositoryContainer
from .sqlalchemy_impl import create_sqlalchemy_container


def get_repository_container(
    request: Request,
    db: Session = Depends(get_db),
) -> RepositoryContainer:
    """
    Return the repository container for the configured backend.

    The in-memory backend's container is built once at startup and kept on
    ``app.state.repositories``; otherwise a SQLAlchemy container is built
    around the request's session.
    """
    container = getattr(request.app.state, "repositories", None)
    if container is not None:
        return container
    return create_sqlalchemy_container(db)
