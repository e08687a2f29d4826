"""Result types returned by feed discovery."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class FeedType(str, Enum):
    RSS = "RSS"
    ATOM = "Atom"

    @classmethod
    def from_mime(cls, mime_type: str) -> "FeedType":
        """Atom when the MIME type mentions atom; RSS otherwise, generic XML included."""
        return cls.ATOM if "atom" in (mime_type or "").lower() else cls.RSS


class DiscoveryMethod(str, Enum):
    META_TAG = "meta-tag"
    COMMON_PATH = "common-path"


@dataclass(frozen=True)
class FeedResult:
    url: str
    title: str
    type: FeedType
    discovery_method: DiscoveryMethod
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "type": self.type.value,
            "discoveryMethod": self.discovery_method.value,
        }
        if self.description:
            data["description"] = self.description
        return data
