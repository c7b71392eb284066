# api/dependencies.py
from dataclasses import dataclass
from typing import Iterator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from magpie.auth.context import AuthenticatedUser, UserContext, UserContextResolver
from magpie.auth.guard import OwnershipGuard
from magpie.auth.tokens import GoogleTokenValidator, TokenValidator
from magpie.config import Settings
from magpie.errors import AuthenticationRequired
from magpie.sa.database import Database
from magpie.services import AuthService, BookService


@dataclass
class Services:
    """Everything the API needs, built once and handed to create_app."""
    settings: Settings
    database: Database
    guard: OwnershipGuard
    token_validator: TokenValidator
    context_resolver: UserContextResolver


def build_services(
    settings: Settings,
    database: Optional[Database] = None,
    token_validator: Optional[TokenValidator] = None,
) -> Services:
    database = database or Database(settings.database_url)
    token_validator = token_validator or GoogleTokenValidator(
        audiences=settings.audiences,
        issuers=settings.google_issuers,
    )
    return Services(
        settings=settings,
        database=database,
        guard=OwnershipGuard(public_isbns=settings.public_records),
        token_validator=token_validator,
        context_resolver=UserContextResolver(token_validator, database),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_db(services: Services = Depends(get_services)) -> Iterator[Session]:
    """Get a database session for one request.

    Yields:
        Session: A SQLAlchemy session, closed when the request is complete
    """
    session = services.database.get_session()
    try:
        yield session
    finally:
        session.close()


async def get_user_context(
    authorization: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> UserContext:
    return await services.context_resolver.resolve(authorization)


def require_user(context: UserContext = Depends(get_user_context)) -> AuthenticatedUser:
    if not context.is_authenticated:
        raise AuthenticationRequired("You must be logged in to access this resource")
    return context


def get_book_service(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> BookService:
    return BookService(db, services.guard)


def get_auth_service(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> AuthService:
    return AuthService(services.token_validator, db)
