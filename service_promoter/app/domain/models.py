"""
Descriptor models and promotion reports.

RES answers management API reads with loosely structured JSON. The models
below decode only the fields the promoter consults; unknown fields are
ignored and missing required fields surface as ProtocolError.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared.errors import PromoterException, ProtocolError

MANAGED_XOM_PROPERTY = "ruleset.managedxom.uris"
LIBRARY_TOKEN = "reslib"


def _decode(model: type, document: Any, what: str):
    if document is None:
        raise ProtocolError(f"Empty {what} document")
    try:
        return model.model_validate(document)
    except ValidationError as exc:
        raise ProtocolError(
            f"Malformed {what} document",
            details={"errors": exc.errors(include_url=False, include_input=False, include_context=False)}
        ) from exc


class Property(BaseModel):
    """Ruleset property."""
    model_config = ConfigDict(extra="ignore")

    id: str
    value: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def _scalar_to_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float, bool)):
            return str(value)
        return value


class RulesetDescriptor(BaseModel):
    """Ruleset entry of a RuleApp descriptor."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    properties: List[Property] = Field(default_factory=list)


class RuleAppDescriptor(BaseModel):
    """RuleApp descriptor as returned by ``/ruleapps/{name}/{version}``."""
    model_config = ConfigDict(extra="ignore")

    id: str
    rulesets: List[RulesetDescriptor]

    @field_validator("id")
    @classmethod
    def _id_has_version(cls, value: str) -> str:
        if "/" not in value:
            raise ValueError("RuleApp id must have the form name/version")
        return value

    @property
    def name(self) -> str:
        return self.id.split("/", 1)[0]

    @property
    def version(self) -> str:
        return self.id.split("/", 1)[1]

    @classmethod
    def parse(cls, document: Any) -> "RuleAppDescriptor":
        return _decode(cls, document, "RuleApp")


class LibraryDescriptor(BaseModel):
    """Managed XOM library: a named list of member XOM URIs."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    content: List[str]

    def content_body(self) -> str:
        """Plain-text body used to create the library on a server."""
        return ", ".join(self.content)

    @classmethod
    def parse(cls, document: Any) -> "LibraryDescriptor":
        return _decode(cls, document, "library")


def managed_xom_uris(descriptor: RuleAppDescriptor) -> List[str]:
    """Managed XOM URIs referenced by the RuleApp, first occurrence order."""
    uris: List[str] = []
    for ruleset in descriptor.rulesets:
        for prop in ruleset.properties:
            if prop.id == MANAGED_XOM_PROPERTY and prop.value is not None and prop.value not in uris:
                uris.append(prop.value)
    return uris


def is_library_uri(uri: str) -> bool:
    return LIBRARY_TOKEN in uri


def uri_name_version(uri: str) -> str:
    """``reslib://libA/2`` -> ``libA/2``."""
    _, sep, path = uri.partition("//")
    if not sep:
        raise ProtocolError(f"Managed URI has no '//' separator: {uri}", details={"uri": uri})
    return path


def xom_name(uri: str) -> str:
    """``res://xomA/2`` -> ``xomA``."""
    name_version = uri_name_version(uri)
    name, sep, _ = name_version.partition("/")
    if not sep:
        raise ProtocolError(f"Managed URI has no version: {uri}", details={"uri": uri})
    return name


class PromotionStatus(str, Enum):
    """Terminal state of a promotion."""
    PROMOTED = "promoted"
    SIMULATED = "simulated"
    NOT_ON_SOURCE = "not_on_source"
    FAILED = "failed"


@dataclass
class PromotionAction:
    """One artifact handled during a promotion."""
    kind: str
    target: str
    outcome: str
    staged_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"kind": self.kind, "target": self.target, "outcome": self.outcome}
        if self.staged_path is not None:
            data["staged_path"] = self.staged_path
        return data


@dataclass
class PromotionReport:
    """Aggregate outcome of ``Promoter.replicate``.

    ``ok`` discriminates success from failure; a failed report keeps the
    actions completed before the error, since the destination may be left
    partially promoted.
    """
    ruleapp: str
    execute: bool
    status: PromotionStatus = PromotionStatus.SIMULATED
    version: Optional[str] = None
    promotion_id: Optional[str] = None
    actions: List[PromotionAction] = field(default_factory=list)
    error: Optional[PromoterException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def record(self, kind: str, target: str, outcome: str, staged_path: Optional[str] = None) -> None:
        self.actions.append(PromotionAction(kind, target, outcome, staged_path))

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        error = None
        if self.error is not None:
            error = self.error.to_response()
            error.promotion_id = self.promotion_id
        return {
            "promotion_id": self.promotion_id,
            "ruleapp": self.ruleapp,
            "version": self.version,
            "execute": self.execute,
            "status": self.status.value,
            "actions": [action.to_dict() for action in self.actions],
            "error": error.model_dump() if error is not None else None,
        }
