import logging
from typing import Any, Dict, List
from uuid import UUID

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reviews_api import config, crud, db
from reviews_api.auth_utils import get_current_user, issue_token
from reviews_api.db import get_db
from reviews_api.errors import (
    ConstraintViolation,
    ForeignKeyViolation,
    InvalidCredentials,
    NotFoundOrNotOwned,
    UniqueViolation,
)
from reviews_api.schemas import (
    APIMessage,
    Comment,
    CommentCreate,
    CommentUpdate,
    Item,
    ItemCreate,
    ItemDetail,
    LoginRequest,
    LoginResponse,
    Review,
    ReviewCreate,
    ReviewUpdate,
    RegisterRequest,
    TokenUser,
    User,
)

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Service health checks."},
    {"name": "Auth", "description": "Registration, login and current user."},
    {"name": "Items", "description": "Items and their review summaries."},
    {"name": "Reviews", "description": "Scored reviews of items."},
    {"name": "Comments", "description": "Comments on reviews."},
    {"name": "Users", "description": "Account removal."},
]

app = FastAPI(
    title="Item Reviews API",
    description=(
        "Users review items and comment on each other's reviews.\n\n"
        "Auth: Use the `Authorization: Bearer <token>` header for protected routes."
    ),
    version="1.0.0",
    openapi_tags=openapi_tags,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": detail})


@app.exception_handler(StarletteHTTPException)
def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error(exc.status_code, exc.detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(UniqueViolation)
def _unique_violation(request: Request, exc: UniqueViolation) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, "Already exists")


def _constraint_violation(request: Request, exc: Exception) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "Constraint violation")


for _exc_class in ConstraintViolation:
    app.add_exception_handler(_exc_class, _constraint_violation)


@app.exception_handler(ForeignKeyViolation)
def _foreign_key_violation(request: Request, exc: ForeignKeyViolation) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "Referenced record not found")


@app.exception_handler(InvalidCredentials)
def _invalid_credentials(request: Request, exc: InvalidCredentials) -> JSONResponse:
    return _error(status.HTTP_401_UNAUTHORIZED, "Invalid email or password")


@app.exception_handler(NotFoundOrNotOwned)
def _not_found_or_not_owned(request: Request, exc: NotFoundOrNotOwned) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, f"{exc} not found")


@app.exception_handler(Exception)
def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _require_self(user: Dict[str, Any], user_id: UUID, action: str) -> None:
    if str(user["id"]) != str(user_id):
        raise _forbidden(f"Unauthorized to {action}")


@app.on_event("startup")
def _startup() -> None:
    logging.basicConfig(level=config.log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    db.init_db_pool()
    if config.reset_on_startup():
        from reviews_api.seed import reset_and_seed

        reset_and_seed()
        logger.info("Database reset and seeded")


@app.on_event("shutdown")
def _shutdown() -> None:
    db.close_db_pool()


@app.get("/", response_model=APIMessage, tags=["Health"], summary="Health check")
def health_check() -> Dict[str, str]:
    """Health check endpoint used by the frontend to verify backend availability."""
    return {"message": "Healthy"}


# =========================
# Auth
# =========================

@app.post(
    "/api/auth/register",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    tags=["Auth"],
    summary="Register",
)
def register(payload: RegisterRequest, conn=Depends(get_db)) -> Dict[str, Any]:
    """Create a new user. Duplicate username or email yields 409."""
    return crud.create_user(conn, payload.username, payload.email, payload.password)


@app.post("/api/auth/login", response_model=LoginResponse, tags=["Auth"], summary="Login")
def login(payload: LoginRequest, conn=Depends(get_db)) -> Dict[str, Any]:
    """Authenticate user and return a bearer token."""
    user = crud.authenticate_user(conn, payload.email, payload.password)
    return {"token": issue_token(user), "user": user}


@app.get("/api/auth/me", response_model=TokenUser, tags=["Auth"], summary="Get current user")
def me(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Return the current authenticated user."""
    return user


# =========================
# Items
# =========================

@app.get("/api/items", response_model=List[Item], tags=["Items"], summary="List items")
def list_items(conn=Depends(get_db)) -> List[Dict[str, Any]]:
    return crud.list_items(conn)


@app.post(
    "/api/items",
    response_model=Item,
    status_code=status.HTTP_201_CREATED,
    tags=["Items"],
    summary="Create item",
)
def create_item(
    payload: ItemCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Dict[str, Any]:
    """Create an item. Duplicate names yield 409."""
    return crud.create_item(conn, payload.name, payload.description)


@app.get("/api/items/{item_id}", response_model=ItemDetail, tags=["Items"], summary="Get item with reviews")
def get_item(item_id: UUID, conn=Depends(get_db)) -> Dict[str, Any]:
    """Get an item, its reviews (newest first) and their average score."""
    detail = crud.get_item_with_reviews_and_average(conn, item_id)
    if detail is None:
        raise NotFoundOrNotOwned("Item")
    return detail


# =========================
# Reviews
# =========================

@app.get("/api/items/{item_id}/reviews", response_model=List[Review], tags=["Reviews"], summary="List item reviews")
def list_item_reviews(item_id: UUID, conn=Depends(get_db)) -> List[Dict[str, Any]]:
    return crud.list_reviews_for_item(conn, item_id)


@app.post(
    "/api/items/{item_id}/reviews",
    response_model=Review,
    status_code=status.HTTP_201_CREATED,
    tags=["Reviews"],
    summary="Create review",
)
def create_review(
    item_id: UUID,
    payload: ReviewCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Dict[str, Any]:
    """Review an item. Each user may review an item once; a second attempt yields 409."""
    return crud.create_review(conn, user["id"], item_id, payload.score, payload.text)


@app.get("/api/reviews/me", response_model=List[Review], tags=["Reviews"], summary="My reviews")
def my_reviews(user: Dict[str, Any] = Depends(get_current_user), conn=Depends(get_db)) -> List[Dict[str, Any]]:
    return crud.list_reviews_by_user(conn, user["id"])


@app.put("/api/users/{user_id}/reviews/{review_id}", response_model=Review, tags=["Reviews"], summary="Update review")
def update_review(
    user_id: UUID,
    review_id: UUID,
    payload: ReviewUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Dict[str, Any]:
    """Update the text and score of one of your own reviews."""
    _require_self(user, user_id, "update this review")
    review = crud.update_review(conn, review_id, user["id"], payload.text, payload.score)
    if review is None:
        raise NotFoundOrNotOwned("Review")
    return review


@app.delete(
    "/api/users/{user_id}/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Reviews"],
    summary="Delete review",
)
def delete_review(
    user_id: UUID,
    review_id: UUID,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Response:
    """Delete one of your own reviews along with its comments."""
    _require_self(user, user_id, "delete this review")
    if crud.delete_review(conn, review_id, user["id"]) is None:
        raise NotFoundOrNotOwned("Review")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================
# Comments
# =========================

@app.get(
    "/api/reviews/{review_id}/comments",
    response_model=List[Comment],
    tags=["Comments"],
    summary="List review comments",
)
def list_review_comments(review_id: UUID, conn=Depends(get_db)) -> List[Dict[str, Any]]:
    return crud.list_comments_for_review(conn, review_id)


@app.post(
    "/api/items/{item_id}/reviews/{review_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
    tags=["Comments"],
    summary="Comment on review",
)
def create_comment(
    item_id: UUID,
    review_id: UUID,
    payload: CommentCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Dict[str, Any]:
    """Comment on a review of the given item. One comment per user per review."""
    review = crud.get_review(conn, review_id)
    if review is None or str(review["item_id"]) != str(item_id):
        raise NotFoundOrNotOwned("Review")
    return crud.create_comment(conn, user["id"], review_id, payload.text)


@app.get("/api/comments/me", response_model=List[Comment], tags=["Comments"], summary="My comments")
def my_comments(user: Dict[str, Any] = Depends(get_current_user), conn=Depends(get_db)) -> List[Dict[str, Any]]:
    return crud.list_comments_by_user(conn, user["id"])


@app.put(
    "/api/users/{user_id}/comments/{comment_id}",
    response_model=Comment,
    tags=["Comments"],
    summary="Update comment",
)
def update_comment(
    user_id: UUID,
    comment_id: UUID,
    payload: CommentUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Dict[str, Any]:
    _require_self(user, user_id, "update this comment")
    comment = crud.update_comment(conn, comment_id, user["id"], payload.text)
    if comment is None:
        raise NotFoundOrNotOwned("Comment")
    return comment


@app.delete(
    "/api/users/{user_id}/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Comments"],
    summary="Delete comment",
)
def delete_comment(
    user_id: UUID,
    comment_id: UUID,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Response:
    _require_self(user, user_id, "delete this comment")
    if crud.delete_comment(conn, comment_id, user["id"]) is None:
        raise NotFoundOrNotOwned("Comment")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =========================
# Users
# =========================

@app.delete(
    "/api/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Users"],
    summary="Delete account",
)
def delete_user(
    user_id: UUID,
    user: Dict[str, Any] = Depends(get_current_user),
    conn=Depends(get_db),
) -> Response:
    """Delete your own account together with all your reviews and comments."""
    _require_self(user, user_id, "delete this user")
    if crud.delete_user(conn, user_id) is None:
        raise NotFoundOrNotOwned("User")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the API with uvicorn on APP_HOST:APP_PORT."""
    uvicorn.run(
        "reviews_api.main:app",
        host=config.app_host(),
        port=config.app_port(),
        log_level=config.log_level().lower(),
    )
