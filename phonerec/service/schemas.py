"""Pydantic schemas for the recommendation API."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

UserIdField = Union[int, str]


class RecommendRequest(BaseModel):
    """Request for user-based CF recommendations."""

    user_id: UserIdField = Field(..., description="userId as it appears in the ratings file")
    n: Optional[int] = Field(None, ge=1, le=100, description="Number of recommendations (default from config)")
    k: Optional[int] = Field(None, ge=1, le=500, description="Neighborhood size (default from config)")
    negative_similarity: Optional[Literal["exclude", "include"]] = Field(
        None, description="Whether negatively-correlated neighbors contribute"
    )


class RecommendationItem(BaseModel):
    itemId: UserIdField
    predicted_value: float
    brand: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[str] = None


class RecommendResponse(BaseModel):
    user_id: UserIdField
    n: int
    k: int
    results: list[RecommendationItem]


class SimilarUsersRequest(BaseModel):
    user_id: UserIdField
    k: Optional[int] = Field(None, ge=1, le=500, description="Number of similar users to return")


class SimilarUserItem(BaseModel):
    userId: UserIdField
    similarity: float


class SimilarUsersResponse(BaseModel):
    user_id: UserIdField
    k: int
    results: list[SimilarUserItem]


class HealthResponse(BaseModel):
    status: str
    users: int
    items: int
    ratings: int
