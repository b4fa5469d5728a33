"""
Domain types for the promoter.
"""

from .endpoint import ServerEndpoint
from .models import (
    MANAGED_XOM_PROPERTY,
    LibraryDescriptor,
    PromotionAction,
    PromotionReport,
    PromotionStatus,
    Property,
    RuleAppDescriptor,
    RulesetDescriptor,
    is_library_uri,
    managed_xom_uris,
    uri_name_version,
    xom_name,
)

__all__ = [
    "ServerEndpoint",
    "MANAGED_XOM_PROPERTY",
    "LibraryDescriptor",
    "PromotionAction",
    "PromotionReport",
    "PromotionStatus",
    "Property",
    "RuleAppDescriptor",
    "RulesetDescriptor",
    "is_library_uri",
    "managed_xom_uris",
    "uri_name_version",
    "xom_name",
]
