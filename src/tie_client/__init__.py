"""TIE Client - File and certificate reputations over a DXL messaging fabric."""

__version__ = "0.1.0"

from .attributes import (
    AtdAttrib,
    CertEnterpriseAttrib,
    CertGtiAttrib,
    EnterpriseAttrib,
    FileEnterpriseAttrib,
    FileGtiAttrib,
    GtiAttrib,
)
from .client import TieClient, wait_for_result
from .constants import (
    AtdTrustLevel,
    CertProvider,
    CertRepChangeEventProp,
    CertReputationOverriddenProp,
    CertReputationProp,
    DetectionEventProp,
    FileProvider,
    FileRepChangeEventProp,
    FileReputationProp,
    FileType,
    FirstInstanceEventProp,
    FirstRefProp,
    HashType,
    RepChangeEventProp,
    TrustLevel,
)
from .decoders import to_local_time, to_local_time_string
from .errors import FabricError, TieError, TiePayloadError, TieValidationError
from .fabric import FabricClient, FabricMessage
from .settings import TieSettings

__all__ = [
    "__version__",
    "TieClient",
    "wait_for_result",
    "TieSettings",
    "FabricClient",
    "FabricMessage",
    "TieError",
    "TieValidationError",
    "TiePayloadError",
    "FabricError",
    "HashType",
    "TrustLevel",
    "AtdTrustLevel",
    "FileProvider",
    "CertProvider",
    "FileType",
    "FileReputationProp",
    "CertReputationProp",
    "CertReputationOverriddenProp",
    "RepChangeEventProp",
    "FileRepChangeEventProp",
    "CertRepChangeEventProp",
    "DetectionEventProp",
    "FirstInstanceEventProp",
    "FirstRefProp",
    "GtiAttrib",
    "FileGtiAttrib",
    "CertGtiAttrib",
    "EnterpriseAttrib",
    "FileEnterpriseAttrib",
    "CertEnterpriseAttrib",
    "AtdAttrib",
    "to_local_time",
    "to_local_time_string",
]
