# api/routes/books.py

from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Query, Response, status

from magpie.auth.context import UserContext
from magpie.sa.repositories.book import BookSearchCriteria
from magpie.services import BookService
from api.dependencies import get_book_service, get_user_context
from api.schemas.book import (
    BookCreate, BookUpdate, BookSchema, FavouriteUpdate, LoanUpdate, ShareRequest
)
from api.schemas.common import ErrorResponse, PaginatedResponse

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

router = APIRouter(prefix="/records", tags=["records"], responses=ERROR_RESPONSES)
search_router = APIRouter(tags=["search"], responses={401: {"model": ErrorResponse}})


@router.get("", response_model=PaginatedResponse[BookSchema])
def get_books(
    query: Optional[str] = Query(None, description="Search title, authors and ISBN"),
    genre: Optional[str] = Query(None),
    type: Optional[Literal["reference", "personal"]] = Query(None),
    is_favourite: Optional[bool] = Query(None, alias="isFavourite"),
    is_loaned: Optional[bool] = Query(None, alias="isLoaned"),
    condition: Optional[str] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    sort_field: str = Query("title", alias="sortField", description="title, author, genre, publishingYear or createdAt"),
    sort_direction: str = Query("asc", alias="sortDirection", description="asc or desc"),
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    """
    Paginated list of the caller's visible books (owned, or shared with them).
    Visibility is applied before the search and field filters.
    """
    criteria = BookSearchCriteria(
        query=query,
        genre=genre,
        type=type,
        is_favourite=is_favourite,
        is_loaned=is_loaned,
        condition=condition,
    )
    result = service.list_books(
        context,
        criteria,
        sort_field=sort_field,
        sort_order=sort_direction,
        page=page,
        limit=limit,
    )
    return PaginatedResponse[BookSchema](
        data=[BookSchema.from_book(book) for book in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/{isbn}", response_model=BookSchema)
def get_book(
    isbn: str,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    return BookSchema.from_book(service.get_book(context, isbn))


@router.post("", response_model=BookSchema, status_code=status.HTTP_201_CREATED)
def create_book(
    payload: BookCreate,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    book = service.create_book(context, payload.model_dump())
    return BookSchema.from_book(book)


@router.put("/{isbn}", response_model=BookSchema)
def update_book(
    isbn: str,
    payload: BookUpdate,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    book = service.update_book(context, isbn, payload.model_dump(exclude_unset=True))
    return BookSchema.from_book(book)


@router.delete("/{isbn}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    isbn: str,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    service.delete_book(context, isbn)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{isbn}/favourite", response_model=BookSchema)
def set_favourite(
    isbn: str,
    payload: FavouriteUpdate,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    return BookSchema.from_book(service.set_favourite(context, isbn, payload.is_favourite))


@router.put("/{isbn}/loan", response_model=BookSchema)
def update_loan_status(
    isbn: str,
    payload: LoanUpdate,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    book = service.update_loan_status(context, isbn, payload.loan_status.model_dump())
    return BookSchema.from_book(book)


@router.post("/{isbn}/share", response_model=BookSchema)
def share_book(
    isbn: str,
    payload: ShareRequest,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    book = service.share_book(
        context,
        isbn,
        payload.identities,
        permissions=payload.permissions,
        message=payload.message,
    )
    return BookSchema.from_book(book)


@router.delete("/{isbn}/share/{identity}", response_model=BookSchema)
def remove_user_from_book(
    isbn: str,
    identity: str,
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    return BookSchema.from_book(service.remove_user_from_book(context, isbn, identity))


@search_router.get("/search", response_model=List[BookSchema])
def search_books(
    q: str = Query(..., min_length=1, description="Search title, authors and ISBN"),
    context: UserContext = Depends(get_user_context),
    service: BookService = Depends(get_book_service),
):
    return [BookSchema.from_book(book) for book in service.search_books(context, q)]
