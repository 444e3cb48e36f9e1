"""
Data models for the shop client core.

This module defines the home payload schema served by the remote API,
the mapped home sections, persisted cache rows, search history entries
and the token grant returned by the refresh endpoint.

Parsers are strict about required fields (absent, null or mistyped values
raise) and permissive about optional ones (absent or null become None).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from .decoder import format_iso8601, parse_iso8601
from .enums import HomeSectionType


def _as_dict(data: Any) -> dict:
    if not isinstance(data, dict):
        raise TypeError(f"Expected JSON object, got {type(data).__name__}")
    return data


def _check_type(key: str, value: Any, kind: type) -> Any:
    # bool is an int subclass; JSON booleans must not pass as numbers
    if not isinstance(value, kind) or (kind in (int, float) and isinstance(value, bool)):
        raise TypeError(f"Field {key!r}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _required(data: dict, key: str, kind: type) -> Any:
    if data.get(key) is None:
        raise KeyError(key)
    return _check_type(key, data[key], kind)


def _optional(data: dict, key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return _check_type(key, value, kind)


def _str_list(data: dict, key: str, required: bool = False) -> Optional[list[str]]:
    value = _required(data, key, list) if required else _optional(data, key, list)
    if value is None:
        return None
    return [_check_type(f"{key}[]", item, str) for item in value]


def _object_list(data: dict, key: str, parser, required: bool = True) -> Optional[list]:
    value = _required(data, key, list) if required else _optional(data, key, list)
    if value is None:
        return None
    return [parser(item) for item in value]


def _compact(data: dict) -> dict:
    """Drop None values so optional fields are omitted when encoding."""
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class BannerModel:
    """A banner image."""

    id: str
    image_url: str

    @classmethod
    def from_dict(cls, data: Any) -> "BannerModel":
        data = _as_dict(data)
        return cls(
            id=_required(data, "id", str),
            image_url=_required(data, "imageUrl", str),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "imageUrl": self.image_url}


@dataclass
class CategoryModel:
    """A shop category."""

    id: str
    title: str
    icon_url: str
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CategoryModel":
        data = _as_dict(data)
        return cls(
            id=_required(data, "id", str),
            title=_required(data, "title", str),
            icon_url=_required(data, "iconUrl", str),
            status=_optional(data, "status", str),
        )

    def to_dict(self) -> dict:
        return _compact({
            "id": self.id,
            "title": self.title,
            "iconUrl": self.icon_url,
            "status": self.status,
        })


@dataclass
class ShopAbout:
    """Descriptive text attached to a shop."""

    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ShopAbout":
        data = _as_dict(data)
        return cls(
            title=_optional(data, "title", str),
            description=_optional(data, "description", str),
        )

    def to_dict(self) -> dict:
        return _compact({"title": self.title, "description": self.description})


@dataclass
class ShopModel:
    """A shop listed in the directory."""

    id: str
    title: str
    icon_url: str
    labels: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    about: Optional[ShopAbout] = None
    type: Optional[list[str]] = None
    code: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ShopModel":
        data = _as_dict(data)
        about = data.get("about")
        return cls(
            id=_required(data, "id", str),
            title=_required(data, "title", str),
            icon_url=_required(data, "iconUrl", str),
            labels=_str_list(data, "labels"),
            tags=_str_list(data, "tags"),
            categories=_str_list(data, "categories"),
            about=ShopAbout.from_dict(about) if about is not None else None,
            type=_str_list(data, "type"),
            code=_optional(data, "code", str),
            status=_optional(data, "status", str),
        )

    def to_dict(self) -> dict:
        return _compact({
            "id": self.id,
            "title": self.title,
            "iconUrl": self.icon_url,
            "labels": self.labels,
            "tags": self.tags,
            "categories": self.categories,
            "about": self.about.to_dict() if self.about else None,
            "type": self.type,
            "code": self.code,
            "status": self.status,
        })


@dataclass
class TagModel:
    """A tag that can be attached to shops."""

    id: str
    title: Optional[str] = None
    icon_url: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "TagModel":
        data = _as_dict(data)
        return cls(
            id=_required(data, "id", str),
            title=_optional(data, "title", str),
            icon_url=_optional(data, "iconUrl", str),
            status=_optional(data, "status", str),
        )

    def to_dict(self) -> dict:
        return _compact({
            "id": self.id,
            "title": self.title,
            "iconUrl": self.icon_url,
            "status": self.status,
        })


@dataclass
class LabelModel:
    """A label that can be attached to shops."""

    id: str
    title: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "LabelModel":
        data = _as_dict(data)
        return cls(
            id=_required(data, "id", str),
            title=_optional(data, "title", str),
            status=_optional(data, "status", str),
        )

    def to_dict(self) -> dict:
        return _compact({"id": self.id, "title": self.title, "status": self.status})


@dataclass
class FAQSectionItem:
    """One question/answer pair."""

    title: str
    description: str

    @classmethod
    def from_dict(cls, data: Any) -> "FAQSectionItem":
        data = _as_dict(data)
        return cls(
            title=_required(data, "title", str),
            description=_required(data, "description", str),
        )

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description}


@dataclass
class FAQPayload:
    """The FAQ block of the home feed."""

    id: str
    title: str
    sections: list[FAQSectionItem]

    @classmethod
    def from_dict(cls, data: Any) -> "FAQPayload":
        data = _as_dict(data)
        return cls(
            id=_required(data, "id", str),
            title=_required(data, "title", str),
            sections=_object_list(data, "sections", FAQSectionItem.from_dict),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "sections": [section.to_dict() for section in self.sections],
        }


@dataclass
class HomeSectionPayload:
    """A home section referencing categories, shops or banners by id."""

    type: HomeSectionType
    ids: list[str]
    title: Optional[str] = None
    sub_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "HomeSectionPayload":
        data = _as_dict(data)
        return cls(
            type=HomeSectionType(_required(data, "type", str)),
            ids=_str_list(data, "list", required=True),
            title=_optional(data, "title", str),
            sub_type=_optional(data, "subType", str),
        )

    def to_dict(self) -> dict:
        return _compact({
            "title": self.title,
            "type": self.type.value,
            "subType": self.sub_type,
            "list": self.ids,
        })


@dataclass
class HomePayload:
    """Layout of the home feed."""

    sections: list[HomeSectionPayload]
    search: Optional[bool] = None
    faq: Optional[FAQPayload] = None

    @classmethod
    def from_dict(cls, data: Any) -> "HomePayload":
        data = _as_dict(data)
        faq = data.get("faq")
        return cls(
            sections=_object_list(data, "sections", HomeSectionPayload.from_dict),
            search=_optional(data, "search", bool),
            faq=FAQPayload.from_dict(faq) if faq is not None else None,
        )

    def to_dict(self) -> dict:
        return _compact({
            "search": self.search,
            "faq": self.faq.to_dict() if self.faq else None,
            "sections": [section.to_dict() for section in self.sections],
        })


@dataclass
class HomeResponse:
    """The full home payload served by the remote API."""

    home: HomePayload
    categories: list[CategoryModel]
    shops: list[ShopModel]
    banners: list[BannerModel]
    tags: Optional[list[TagModel]] = None
    labels: Optional[list[LabelModel]] = None

    @classmethod
    def from_dict(cls, data: Any) -> "HomeResponse":
        data = _as_dict(data)
        return cls(
            home=HomePayload.from_dict(_required(data, "home", dict)),
            categories=_object_list(data, "categories", CategoryModel.from_dict),
            shops=_object_list(data, "shops", ShopModel.from_dict),
            banners=_object_list(data, "banners", BannerModel.from_dict),
            tags=_object_list(data, "tags", TagModel.from_dict, required=False),
            labels=_object_list(data, "labels", LabelModel.from_dict, required=False),
        )

    def to_dict(self) -> dict:
        return _compact({
            "home": self.home.to_dict(),
            "categories": [category.to_dict() for category in self.categories],
            "shops": [shop.to_dict() for shop in self.shops],
            "banners": [banner.to_dict() for banner in self.banners],
            "tags": [tag.to_dict() for tag in self.tags] if self.tags is not None else None,
            "labels": [label.to_dict() for label in self.labels] if self.labels is not None else None,
        })


@dataclass
class HomeSectionItem:
    """A home section with its ids resolved to models."""

    kind: HomeSectionType
    items: list[Union[CategoryModel, ShopModel, BannerModel]] = field(default_factory=list)
    title: Optional[str] = None


@dataclass
class CachedSnapshot:
    """Single persisted row holding a serialized payload."""

    id: str
    payload: Any  # JSON-compatible encoding of the cached value
    last_updated: datetime

    @classmethod
    def from_dict(cls, data: Any) -> "CachedSnapshot":
        data = _as_dict(data)
        if "payload" not in data:
            raise KeyError("payload")
        return cls(
            id=_required(data, "id", str),
            payload=data["payload"],
            last_updated=parse_iso8601(_required(data, "last_updated", str)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payload": self.payload,
            "last_updated": format_iso8601(self.last_updated),
        }


@dataclass
class SearchHistoryEntry:
    """A recorded search term."""

    term: str
    created_at: datetime

    @classmethod
    def from_dict(cls, data: Any) -> "SearchHistoryEntry":
        data = _as_dict(data)
        return cls(
            term=_required(data, "term", str),
            created_at=parse_iso8601(_required(data, "created_at", str)),
        )

    def to_dict(self) -> dict:
        return {"term": self.term, "created_at": format_iso8601(self.created_at)}


@dataclass
class TokenGrant:
    """Tokens issued by the authentication server."""

    access_token: str
    expires_in: float
    refresh_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "TokenGrant":
        data = _as_dict(data)
        expires_in = data.get("expires_in")
        if expires_in is None:
            raise KeyError("expires_in")
        if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
            raise TypeError("Field 'expires_in': expected number")
        return cls(
            access_token=_required(data, "access_token", str),
            expires_in=float(expires_in),
            refresh_token=_optional(data, "refresh_token", str),
        )
