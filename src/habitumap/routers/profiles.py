"""The caller's public identity on the feed and the routes they shared."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from habitumap.auth import get_current_user
from habitumap.db import get_supabase

router = APIRouter(prefix="/profiles", tags=["profiles"])


class ProfileOut(BaseModel):
    id: str
    username: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileUpdate(BaseModel):
    # Usernames show up in feed cards and comment threads
    username: Optional[str] = Field(default=None, min_length=3, pattern="^[a-zA-Z0-9_]+$")
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator("bio")
    @classmethod
    def _strip_bio(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None

    def changes(self) -> Dict[str, Any]:
        """Fields the caller sent; an emptied bio is stored as null."""
        sent = self.model_dump(exclude_unset=True)
        if "bio" in sent and not sent["bio"]:
            sent["bio"] = None
        return {k: v for k, v in sent.items() if v is not None or k == "bio"}


def _profiles():
    sb = get_supabase()
    if sb is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return sb


@router.get("/me", response_model=ProfileOut)
def get_my_profile(user_id: str = Depends(get_current_user)):
    rows = _profiles().table("profiles").select("*").eq("id", user_id).limit(1).execute().data
    if not rows:
        raise HTTPException(status_code=404, detail="Profile not found")
    return rows[0]


@router.put("/me", response_model=ProfileOut)
def update_my_profile(body: ProfileUpdate, user_id: str = Depends(get_current_user)):
    changes = body.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    rows = _profiles().table("profiles").update(changes).eq("id", user_id).execute().data
    if not rows:
        raise HTTPException(status_code=404, detail="Profile not found")
    return rows[0]


@router.get("/me/routes", response_model=List[Dict[str, Any]])
def my_shared_routes(user_id: str = Depends(get_current_user)):
    resp = (
        _profiles()
        .table("routes")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return resp.data or []
