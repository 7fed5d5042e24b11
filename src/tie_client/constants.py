"""Constant catalogs shared by TIE requests, responses and events.

Enumerations (hash types, trust levels, providers, file types) are Python
enums so they can be used directly as dictionary keys and JSON values. The
property catalogs are plain namespaces of the wire keys found in reputation
records and event payloads.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Optional


class HashType(str, Enum):
    """Hash algorithms used to identify files and certificates."""

    MD5 = "md5"  # 128-bit
    SHA1 = "sha1"  # 160-bit
    SHA256 = "sha256"


class _CodeCatalog(IntEnum):
    """Numeric enumeration with lenient lookups for wire values."""

    @classmethod
    def has_value(cls, value: Any) -> bool:
        """Whether ``value`` is one of the catalog's codes."""
        try:
            cls(value)
        except (ValueError, TypeError):
            return False
        return True

    @classmethod
    def name_of(cls, value: Any, default: Optional[str] = None) -> str:
        """Symbolic name for ``value``, or ``default`` (the value itself) if unknown."""
        try:
            return cls(value).name
        except (ValueError, TypeError):
            return default if default is not None else str(value)


class TrustLevel(_CodeCatalog):
    """Standard trust levels for files and certificates."""

    KNOWN_TRUSTED_INSTALLER = 100
    KNOWN_TRUSTED = 99
    MOST_LIKELY_TRUSTED = 85
    MIGHT_BE_TRUSTED = 70
    # Seen before, but the provider cannot determine the reputation yet
    UNKNOWN = 50
    MIGHT_BE_MALICIOUS = 30
    MOST_LIKELY_MALICIOUS = 15
    KNOWN_MALICIOUS = 1
    NOT_SET = 0


class AtdTrustLevel(_CodeCatalog):
    """Trust levels used in Advanced Threat Defense (ATD) score attributes."""

    KNOWN_TRUSTED = -1
    MOST_LIKELY_TRUSTED = 0
    MIGHT_BE_TRUSTED = 1
    UNKNOWN = 2
    MIGHT_BE_MALICIOUS = 3
    MOST_LIKELY_MALICIOUS = 4
    KNOWN_MALICIOUS = 5
    NOT_SET = -2


class FileProvider(_CodeCatalog):
    """Providers of file reputations."""

    GTI = 1  # Global Threat Intelligence
    ENTERPRISE = 3
    ATD = 5  # Advanced Threat Defense
    MWG = 7  # Web Gateway
    EXTERNAL = 15


class CertProvider(_CodeCatalog):
    """Providers of certificate reputations."""

    GTI = 2
    ENTERPRISE = 4


class FileType(_CodeCatalog):
    """File type codes accepted by external file reports.

    Several codes are combinations of others (e.g. ``PEEXE`` is ``PE + EXE``).
    """

    NONE = 0
    COM = 1
    EXE = 2
    DRV = 4
    BOOT = 8
    PE = 16
    PEEXE = 18
    VXD = 64
    DLLNONPE = 128
    DLL = 144
    WIN = 272
    MZSTUB = 512
    NLM = 1024
    ELF = 2048
    JS = 4096
    VBS = 8192
    SCRIPT = 12288
    OLE = 16384
    PIC = 65536
    TEXT = 131072
    BAT = 143360
    HTML = 262144
    HTMLTEXT = 393216
    HTA = 524288
    RTF = 1048576
    PDF = 2097152
    MMEDIA = 4194304
    URL = 8388608
    SYS = 16777232
    ZIP = 33587200
    CAB = 67141632
    RARNOARC = 134217728
    RAR = 134250496
    OOXML = 167772160
    OOXMLPK = 301989888
    MACHO = 536870912
    APK = 1073741824
    CLASS = 2147483648
    JAR = 4328554496


class ReputationProp:
    """Properties common to every reputation record."""

    PROVIDER_ID = "providerId"
    TRUST_LEVEL = "trustLevel"
    CREATE_DATE = "createDate"  # Epoch time
    ATTRIBUTES = "attributes"


class FileReputationProp(ReputationProp):
    """Properties of a file reputation record."""


class CertReputationProp(ReputationProp):
    """Properties of a certificate reputation record."""

    # Files currently overriding the certificate's reputation
    OVERRIDDEN = "overridden"


class CertReputationOverriddenProp:
    """Properties of the ``overridden`` entry of a certificate reputation."""

    FILES = "files"
    TRUNCATED = "truncated"


class RepChangeEventProp:
    """Properties common to reputation change events."""

    HASHES = "hashes"
    NEW_REPUTATIONS = "newReputations"
    OLD_REPUTATIONS = "oldReputations"
    UPDATE_TIME = "updateTime"  # Epoch time


class FileRepChangeEventProp(RepChangeEventProp):
    """Properties of a file reputation change event."""

    # Certificate associated with the file, when there is one
    RELATIONSHIPS = "relationships"


class CertRepChangeEventProp(RepChangeEventProp):
    """Properties of a certificate reputation change event."""

    PUBLIC_KEY_SHA1 = "publicKeySha1"


class DetectionEventProp:
    """Properties of a file detection event."""

    SYSTEM_GUID = "agentGuid"
    HASHES = "hashes"
    DETECTION_TIME = "detectionTime"  # Epoch time
    LOCAL_REPUTATION = "localReputation"
    NAME = "name"
    REMEDIATION_ACTION = "remediationAction"


class FirstInstanceEventProp:
    """Properties of a file first-instance event."""

    SYSTEM_GUID = "agentGuid"
    HASHES = "hashes"
    NAME = "name"


class FirstRefProp:
    """Properties of each system returned by a first references query."""

    DATE = "date"  # Epoch time
    SYSTEM_GUID = "agentGuid"
