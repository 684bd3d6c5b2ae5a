from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, conint


class APIMessage(BaseModel):
    message: str = Field(..., description="Human readable message")


class User(BaseModel):
    id: UUID
    username: str
    email: str
    created_at: datetime


class TokenUser(BaseModel):
    id: UUID
    username: str
    email: str


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, description="Unique username")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(..., min_length=1, description="Password")


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="Password")


class LoginResponse(BaseModel):
    token: str = Field(..., description="JWT bearer token, valid for one hour by default")
    user: TokenUser


class Item(BaseModel):
    id: UUID
    name: str
    description: str
    average_score: Decimal
    created_at: datetime


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)


class Review(BaseModel):
    id: UUID
    user_id: UUID
    item_id: UUID
    score: int
    text: str
    created_at: datetime
    updated_at: datetime


class ReviewCreate(BaseModel):
    score: conint(ge=1, le=5) = Field(..., description="Score from 1 to 5")
    text: str = Field(..., min_length=1)


class ReviewUpdate(BaseModel):
    score: conint(ge=1, le=5) = Field(..., description="Score from 1 to 5")
    text: str = Field(..., min_length=1)


class ItemDetail(BaseModel):
    item: Item
    reviews: List[Review] = []
    average_score: Decimal = Field(..., description="Mean review score, two decimals; 0.00 without reviews")


class Comment(BaseModel):
    id: UUID
    user_id: UUID
    review_id: UUID
    text: str
    created_at: datetime
    updated_at: datetime


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1)


class CommentUpdate(BaseModel):
    text: str = Field(..., min_length=1)
