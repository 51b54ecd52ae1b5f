"""
Member routes - profile, password and the admin member list.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from perfumery.api.dependencies import get_linker, get_members, get_review_service
from perfumery.api.responses import success
from perfumery.auth.context import AuthContext
from perfumery.auth.capabilities import Capability
from perfumery.auth.policies import require, require_auth, require_self_or_admin
from perfumery.core.models import MemberResponse, MemberUpdate, ReviewResponse
from perfumery.identity import IdentityLinker, MemberRepository
from perfumery.reviews import ReviewService

router = APIRouter(prefix="/members", tags=["members"])


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(min_length=6, alias="newPassword")


@router.get("/profile")
async def get_profile(ctx: AuthContext = Depends(require_auth())):
    """The authenticated member's own profile."""
    return success(member=MemberResponse.from_member(ctx.member))


@router.get("/profile/reviews")
async def get_my_reviews(
    ctx: AuthContext = Depends(require_auth()),
    reviews: ReviewService = Depends(get_review_service),
):
    """The authenticated member's reviews, newest first. Always empty for admins."""
    items = await reviews.list_for_member(ctx.member)
    return success(
        reviews=[ReviewResponse.from_review(r) for r in items],
        count=len(items),
    )


@router.get("/collectors")
async def list_members(
    search: str | None = None,
    is_admin: bool | None = Query(default=None, alias="isAdmin"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    ctx: AuthContext = Depends(require(Capability.MEMBERS_READ_ALL)),
    members: MemberRepository = Depends(get_members),
):
    """All members. Requires members.read_all (administrators)."""
    found = await members.list_members(search=search, is_admin=is_admin, limit=limit, offset=offset)
    return success(
        members=[MemberResponse.from_member(m) for m in found],
        count=len(found),
    )


@router.put("/{member_id}")
async def update_profile(
    member_id: str,
    data: MemberUpdate,
    ctx: AuthContext = Depends(require_self_or_admin("member_id")),
    linker: IdentityLinker = Depends(get_linker),
):
    """Update name, year of birth and gender of a member."""
    member = await linker.update_profile(member_id, data)
    return success("Profile updated successfully", member=MemberResponse.from_member(member))


@router.put("/{member_id}/password")
async def change_password(
    member_id: str,
    data: ChangePasswordRequest,
    ctx: AuthContext = Depends(require_self_or_admin("member_id")),
    linker: IdentityLinker = Depends(get_linker),
):
    """Change a password; the current password must be supplied."""
    await linker.change_password(member_id, data.current_password, data.new_password)
    return success("Password changed successfully")
