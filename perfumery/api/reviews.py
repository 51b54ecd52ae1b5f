"""
Review (comment) routes on perfumes.

Only the pieces of the catalog that reviews depend on live here: an admin
can seed a perfume, and anyone can read its comments.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from perfumery.api.dependencies import get_review_service
from perfumery.api.responses import success
from perfumery.auth.capabilities import Capability
from perfumery.auth.context import AuthContext
from perfumery.auth.policies import require, require_auth
from perfumery.core.models import ReviewResponse
from perfumery.reviews import ReviewService

router = APIRouter(prefix="/perfumes", tags=["reviews"])


class PerfumeCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)


class CommentRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    content: str

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 5:
            raise ValueError("Comment must be at least 5 characters")
        return value


@router.post("", status_code=201)
async def create_perfume(
    data: PerfumeCreate,
    ctx: AuthContext = Depends(require(Capability.CATALOG_MANAGE)),
    reviews: ReviewService = Depends(get_review_service),
):
    perfume = await reviews.add_perfume(data.name)
    return success("Perfume created successfully", perfume=perfume)


@router.get("/{perfume_id}/comments")
async def list_comments(
    perfume_id: str,
    reviews: ReviewService = Depends(get_review_service),
):
    items = await reviews.list_for_perfume(perfume_id)
    return success(comments=[ReviewResponse.from_review(r) for r in items], count=len(items))


@router.post("/{perfume_id}/comments", status_code=201)
async def add_comment(
    perfume_id: str,
    data: CommentRequest,
    ctx: AuthContext = Depends(require_auth()),
    reviews: ReviewService = Depends(get_review_service),
):
    """One review per member per perfume; administrators cannot review."""
    review = await reviews.create(ctx.member, perfume_id, data.rating, data.content)
    return success("Comment added successfully", comment=ReviewResponse.from_review(review))


@router.put("/{perfume_id}/comments/{comment_id}")
async def update_comment(
    perfume_id: str,
    comment_id: str,
    data: CommentRequest,
    ctx: AuthContext = Depends(require_auth()),
    reviews: ReviewService = Depends(get_review_service),
):
    review = await reviews.update(ctx.member, perfume_id, comment_id, data.rating, data.content)
    return success("Comment updated successfully", comment=ReviewResponse.from_review(review))


@router.delete("/{perfume_id}/comments/{comment_id}")
async def delete_comment(
    perfume_id: str,
    comment_id: str,
    ctx: AuthContext = Depends(require_auth()),
    reviews: ReviewService = Depends(get_review_service),
):
    await reviews.delete(ctx.member, perfume_id, comment_id)
    return success("Comment deleted successfully")
