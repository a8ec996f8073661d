"""
FastAPI main application for the Little Library API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from fastapi import Body, Depends, FastAPI, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import (
    FirebaseIdentityVerifier, VerificationResult, configure_identity_verifier,
    get_current_user, get_identity_verifier, get_verified_identity
)
from api.config import config as api_config
from api.models import BookEnvelope, BookListResponse, ErrorResponse, HealthResponse
from catalog.client import OpenLibrarySearchClient
from library.database import BookRepository
from library.models import BookAccessResult, BookCreate, ErrorKind
from library.query import BookQuery
from library.service import LibraryService
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)

# Global services, created in the lifespan
library_service: Optional[LibraryService] = None
search_client: Optional[OpenLibrarySearchClient] = None

ERROR_STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global library_service, search_client

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Little Library API")

    repository = BookRepository(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection
    )
    try:
        await repository.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    library_service = LibraryService(repository)
    search_client = OpenLibrarySearchClient(
        base_url=config.open_library_base_url,
        cover_base_url=config.open_library_cover_base_url,
        headers={"User-Agent": config.get_user_agent()}
    )
    configure_identity_verifier(FirebaseIdentityVerifier.from_config(config))

    yield

    logger.info("Shutting down Little Library API")
    await repository.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description="""
    A REST API for a personal book library.

    ## Features

    * **Library**: Add, list, update and remove the books in your own library
    * **Filtering**: Free-text search, status, author and location filters
    * **Sorting**: By title, author last name or date added
    * **Catalog search**: Look up books and covers in OpenLibrary

    ## Authentication

    Library endpoints require a Firebase ID token in the Authorization header:

    ```
    Authorization: Bearer your_id_token_here
    ```

    Catalog search endpoints are public.
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.get_cors_origins(),
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.get_cors_allow_methods(),
    allow_headers=api_config.get_cors_allow_headers(),
)


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            message=str(exc.detail),
            status_code=exc.status_code
        ).model_dump(),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Handle malformed request parameters and bodies."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            message="Invalid request",
            detail=str(exc.errors()),
            status_code=status.HTTP_400_BAD_REQUEST
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            message="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


def _get_library_service() -> LibraryService:
    if not library_service:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return library_service


def _get_search_client() -> OpenLibrarySearchClient:
    if not search_client:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Search service not available"
        )
    return search_client


def _raise_for_failure(result: BookAccessResult) -> None:
    if not result.ok:
        raise HTTPException(status_code=ERROR_STATUS_CODES[result.error], detail=result.message)


# Health check endpoint (no authentication required)
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    try:
        db_status = "unknown"
        if library_service:
            health_info = await library_service.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.utcnow(),
            version=api_config.api_version,
            database_status=db_status
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.utcnow(),
            version=api_config.api_version,
            database_status="unhealthy"
        )


# Auth endpoints
@app.get("/api/auth/verify", tags=["Auth"])
def verify_token(identity: VerificationResult = Depends(get_verified_identity)):
    """Check that the bearer token is valid and return the caller's claims."""
    claims = identity.claims
    return {
        "success": True,
        "message": "Token verified successfully",
        "user": {
            "uid": identity.user_id,
            "email": claims.get("email") or "N/A",
            "name": claims.get("name") or "N/A",
            "emailVerified": bool(claims.get("email_verified", False)),
        }
    }


@app.get("/api/auth/me", tags=["Auth"])
def get_current_user_profile(identity: VerificationResult = Depends(get_verified_identity)):
    """Get the authenticated user's profile from the identity provider."""
    profile = get_identity_verifier().get_user(identity.user_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Failed to get user information"
        )
    return {"success": True, "user": profile}


# Library endpoints
@app.get("/api/books", tags=["Books"])
async def get_my_books(
    search: Optional[str] = Query(None, description="Search title, author, ISBN or publisher"),
    reading_status: Optional[str] = Query(None, alias="status", description="Filter by reading status"),
    author: Optional[str] = Query(None, description="Filter by author"),
    location: Optional[str] = Query(None, description="Filter by location"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="Sort field (title, author, dateAdded)"),
    order: Optional[str] = Query("asc", description="Sort order (asc, desc)"),
    user_id: str = Depends(get_current_user)
):
    """
    Get the authenticated user's books with optional filtering and sorting.

    - **search**: Case-insensitive search across title, author, ISBN and publisher
    - **status**: Reading status (e.g. to-read, reading, completed)
    - **author**: Author substring
    - **location**: Location substring
    - **sortBy**: title, author (last name) or dateAdded
    - **order**: asc or desc
    """
    service = _get_library_service()
    query = BookQuery(
        search=search,
        status=reading_status,
        author=author,
        location=location,
        sort_by=sort_by,
        order=order
    )
    try:
        books = await service.list_books(user_id, query)
    except Exception as e:
        logger.error("Failed to get books", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve books: {str(e)}"
        )

    result = BookListResponse(count=len(books), books=books, search_query=query.search)
    return JSONResponse(content=result.to_content())


@app.post("/api/books", status_code=status.HTTP_201_CREATED, tags=["Books"])
async def add_book(
    payload: BookCreate,
    user_id: str = Depends(get_current_user)
):
    """Add a book to the authenticated user's library."""
    service = _get_library_service()
    try:
        book = await service.add_book(user_id, payload)
    except Exception as e:
        logger.error("Failed to add book", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to add book: {str(e)}"
        )

    result = BookEnvelope(message="Book added successfully", book=book)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=result.to_content())


@app.get("/api/books/{book_id}", tags=["Books"])
async def get_book(
    book_id: str,
    user_id: str = Depends(get_current_user)
):
    """Get one of the authenticated user's books."""
    service = _get_library_service()
    try:
        result = await service.get_book(user_id, book_id)
    except Exception as e:
        logger.error("Failed to get book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve book: {str(e)}"
        )

    _raise_for_failure(result)
    return JSONResponse(content=BookEnvelope(book=result.book).to_content())


@app.put("/api/books/{book_id}", tags=["Books"])
async def update_book(
    book_id: str,
    updates: Dict[str, Any] = Body(...),
    user_id: str = Depends(get_current_user)
):
    """
    Update fields of one of the authenticated user's books.

    Any owner field in the body is ignored.
    """
    service = _get_library_service()
    try:
        result = await service.update_book(user_id, book_id, updates)
    except Exception as e:
        logger.error("Failed to update book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update book: {str(e)}"
        )

    _raise_for_failure(result)
    return JSONResponse(content=BookEnvelope(message="Book updated successfully").to_content())


@app.delete("/api/books/{book_id}", tags=["Books"])
async def delete_book(
    book_id: str,
    user_id: str = Depends(get_current_user)
):
    """Delete one of the authenticated user's books."""
    service = _get_library_service()
    try:
        result = await service.delete_book(user_id, book_id)
    except Exception as e:
        logger.error("Failed to delete book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete book: {str(e)}"
        )

    _raise_for_failure(result)
    return JSONResponse(content=BookEnvelope(message="Book deleted successfully").to_content())


# Catalog search endpoints (no authentication required)
@app.get("/search/books", tags=["Search"])
async def search_books(
    q: Optional[str] = Query(None, description="Search query (title, author, ISBN, ...)"),
    limit: int = Query(config.search_default_limit, description="Maximum number of results")
):
    """Search the OpenLibrary catalog."""
    if q is None or not q.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter 'q' is required"
        )

    results = await _get_search_client().search_books(q, limit)
    return JSONResponse(content=[result.to_response() for result in results])


@app.get("/search/books/isbn/{isbn}", tags=["Search"])
async def search_by_isbn(isbn: str):
    """Look up a single book in the OpenLibrary catalog by ISBN."""
    if not isbn.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ISBN is required"
        )

    result = await _get_search_client().search_by_isbn(isbn)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No book found for ISBN '{isbn}'"
        )
    return JSONResponse(content=result.to_response())


@app.get("/search/health", tags=["Search"])
async def search_health():
    """Check that the OpenLibrary API is reachable."""
    health = await _get_search_client().health_check()
    status_code = (
        status.HTTP_200_OK if health["status"] == "UP"
        else ERROR_STATUS_CODES[ErrorKind.UPSTREAM_UNAVAILABLE]
    )
    return JSONResponse(status_code=status_code, content=health)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower()
    )
