"""
Outbound Message Contracts

Argument types for building Cloud API request bodies.
Every type renders itself with to_payload(); unset optional fields are
left out of the rendered JSON.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


def to_payload(value: Any) -> Any:
    """
    Render a contract object (or a plain dict/list) as JSON-ready data.

    Dataclasses are converted field by field, dropping None values.
    Dicts and lists pass through with their items rendered the same way.
    """
    if hasattr(value, "to_payload"):
        return value.to_payload()
    if is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_payload(getattr(value, f.name))
            for f in fields(value)
            if getattr(value, f.name) is not None
        }
    if isinstance(value, dict):
        return {key: to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    return value


@dataclass(frozen=True)
class MediaSource:
    """Media referenced either by public link or by uploaded media ID."""

    link: str | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        if bool(self.link) == bool(self.id):
            raise ValueError("MediaSource needs exactly one of link or id")

    @classmethod
    def from_url(cls, url: str) -> "MediaSource":
        return cls(link=url)

    @classmethod
    def from_id(cls, media_id: str) -> "MediaSource":
        return cls(id=media_id)

    def to_payload(self) -> dict[str, Any]:
        if self.link:
            return {"link": self.link}
        return {"id": self.id}


@dataclass(frozen=True)
class Button:
    """Quick-reply button (max 3 per message)."""

    id: str
    title: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": "reply", "reply": {"id": self.id, "title": self.title}}


@dataclass(frozen=True)
class ListRow:
    id: str
    title: str
    description: str | None = None


@dataclass(frozen=True)
class ListSection:
    title: str
    rows: list[ListRow] = field(default_factory=list)


@dataclass(frozen=True)
class CTAAction:
    """Call-to-action URL button."""

    text: str
    url: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": "cta_url",
            "parameters": {"display_text": self.text, "url": self.url},
        }


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float
    name: str | None = None
    address: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"latitude": self.lat, "longitude": self.lng}
        if self.name is not None:
            payload["name"] = self.name
        if self.address is not None:
            payload["address"] = self.address
        return payload


@dataclass(frozen=True)
class ContactName:
    formatted_name: str
    first_name: str | None = None
    last_name: str | None = None
    middle_name: str | None = None
    suffix: str | None = None
    prefix: str | None = None


@dataclass(frozen=True)
class ContactPhone:
    phone: str
    type: str | None = None


@dataclass(frozen=True)
class ContactEmail:
    email: str
    type: str | None = None


@dataclass(frozen=True)
class ContactAddress:
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    country: str | None = None
    type: str | None = None


@dataclass(frozen=True)
class ContactOrg:
    company: str | None = None


@dataclass(frozen=True)
class ContactCard:
    """A vCard-like contact shared in a contacts message."""

    name: ContactName
    phones: list[ContactPhone] | None = None
    emails: list[ContactEmail] | None = None
    addresses: list[ContactAddress] | None = None
    org: ContactOrg | None = None


@dataclass(frozen=True)
class TemplateComponent:
    """
    A filled-in template component (header, body or button).

    parameters are already in API shape, e.g. {"type": "text", "text": "Hi"}.
    """

    type: str
    parameters: list[dict[str, Any]] = field(default_factory=list)
    sub_type: str | None = None
    index: int | None = None


@dataclass
class MultipartForm:
    """
    Binary form body.

    The request pipeline sends it as multipart/form-data and lets httpx
    choose the boundary; every other body is sent as JSON.

    Attributes:
        data: Plain form fields
        files: Field name -> (filename, content, content type)
    """

    data: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str]] = field(default_factory=dict)
