"""
Firestore document models using Python dataclasses.

Documents in the store use camelCase field names (they are shared with the
browser client). Each model exposes snake_case attributes and includes:
  - An `id` field for the Firestore document ID
  - A `to_dict()` instance method producing the stored representation
  - A `from_dict(data, doc_id)` classmethod for deserialization
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _parse_datetime(value) -> Optional[datetime]:
    """Convert a value to datetime. Accepts datetime objects, ISO-format
    strings, epoch milliseconds, and Firestore DatetimeWithNanoseconds objects."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        # Handle ISO format strings (with or without trailing Z)
        value = value.replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            return None
    return None


# ===========================================================================
# 1. Game
# ===========================================================================

@dataclass
class Game:
    id: Optional[str] = None
    name: str = ""
    description: str = ""
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> Game:
        return cls(
            id=doc_id or data.get("id"),
            name=data.get("name", ""),
            description=data.get("description") or "",
            image=data.get("image"),
        )


# ===========================================================================
# 2. Guide
# ===========================================================================

@dataclass
class Guide:
    id: Optional[str] = None
    title: str = ""
    content: str = ""
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    author_verified: bool = False
    game_id: Optional[str] = None
    likes_count: int = 0
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "authorVerified": self.author_verified,
            "gameId": self.game_id,
            "likesCount": self.likes_count,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> Guide:
        return cls(
            id=doc_id or data.get("id"),
            title=data.get("title", ""),
            content=data.get("content") or "",
            author_id=data.get("authorId"),
            author_name=data.get("authorName"),
            author_verified=bool(data.get("authorVerified", False)),
            game_id=data.get("gameId"),
            likes_count=int(data.get("likesCount") or 0),
            created_at=_parse_datetime(data.get("createdAt")),
        )


# ===========================================================================
# 3. Favorite
# ===========================================================================

@dataclass
class Favorite:
    id: Optional[str] = None
    user_id: Optional[str] = None
    guide_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "guideId": self.guide_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> Favorite:
        return cls(
            id=doc_id or data.get("id"),
            user_id=data.get("userId"),
            guide_id=data.get("guideId"),
            created_at=_parse_datetime(data.get("createdAt")),
        )


# ===========================================================================
# 4. Build
# ===========================================================================

@dataclass
class Build:
    id: Optional[str] = None
    user_id: Optional[str] = None
    game_id: Optional[str] = None
    title: str = ""
    description: str = ""
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "gameId": self.game_id,
            "title": self.title,
            "description": self.description,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> Build:
        return cls(
            id=doc_id or data.get("id"),
            user_id=data.get("userId"),
            game_id=data.get("gameId"),
            title=data.get("title", ""),
            description=data.get("description") or "",
            created_at=_parse_datetime(data.get("createdAt")),
        )


# ===========================================================================
# 5. User profile
# ===========================================================================

@dataclass
class UserProfile:
    uid: Optional[str] = None
    email: str = ""
    username: str = ""
    role: str = "user"
    verified: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "username": self.username,
            "role": self.role,
            "verified": self.verified,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> UserProfile:
        return cls(
            uid=data.get("uid") or doc_id,
            email=data.get("email", ""),
            username=data.get("username", ""),
            role=data.get("role", "user"),
            verified=bool(data.get("verified", False)),
            created_at=_parse_datetime(data.get("createdAt")),
        )
