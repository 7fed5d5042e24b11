"""Provider-specific reputation attribute identifiers.

Attribute keys in a reputation record are decimal strings. They are kept as
opaque strings; these catalogs are the only source of their meaning.

Example::

    ent = reputations[FileProvider.ENTERPRISE][FileReputationProp.ATTRIBUTES]
    to_local_time_string(ent[FileEnterpriseAttrib.FIRST_CONTACT])
"""

from __future__ import annotations

from . import decoders


class GtiAttrib:
    """Attributes shared by Global Threat Intelligence (GTI) reputations."""

    ORIGINAL_RESPONSE = "2120340"


class FileGtiAttrib:
    """GTI attributes of a file reputation."""

    FIRST_CONTACT = "2101908"  # Epoch time
    PREVALENCE = "2102421"
    ORIGINAL_RESPONSE = GtiAttrib.ORIGINAL_RESPONSE


class CertGtiAttrib:
    """GTI attributes of a certificate reputation."""

    PREVALENCE = "2108821"
    FIRST_CONTACT = "2109077"  # Epoch time
    REVOKED = "2117524"
    ORIGINAL_RESPONSE = GtiAttrib.ORIGINAL_RESPONSE


class EnterpriseAttrib:
    """Attributes shared by Enterprise reputations."""

    # Packed 64-bit version of the TIE server, see to_version_array()
    SERVER_VERSION = "2139285"

    to_version_array = staticmethod(decoders.to_version_array)
    to_version_string = staticmethod(decoders.to_version_string)


class FileEnterpriseAttrib(EnterpriseAttrib):
    """Enterprise attributes of a file reputation."""

    PREVALENCE = "2101652"
    FIRST_CONTACT = "2102165"  # Epoch time
    ENTERPRISE_SIZE = "2111893"
    # Aggregates, decode with to_aggregate_array()
    MIN_LOCAL_REP = "2112148"
    MAX_LOCAL_REP = "2112404"
    AVG_LOCAL_REP = "2112660"
    PARENT_MIN_LOCAL_REP = "2112916"
    PARENT_MAX_LOCAL_REP = "2113172"
    PARENT_AVG_LOCAL_REP = "2113428"
    DETECTION_COUNT = "2113685"
    LAST_DETECTION_TIME = "2113942"  # Epoch time
    FILE_NAME_COUNT = "2114965"
    IS_PREVALENT = "2123156"
    PARENT_FILE_REPS = "2138264"
    CHILD_FILE_REPS = "2138520"

    to_aggregate_array = staticmethod(decoders.to_aggregate_array)


class CertEnterpriseAttrib(EnterpriseAttrib):
    """Enterprise attributes of a certificate reputation."""

    FIRST_CONTACT = "2109589"  # Epoch time
    PREVALENCE = "2109333"
    HAS_FILE_OVERRIDES = "2122901"
    IS_PREVALENT = "2125972"


class AtdAttrib:
    """Advanced Threat Defense (ATD) attributes of a file reputation.

    Score values are ``AtdTrustLevel`` codes.
    """

    GAM_SCORE = "4194962"
    AV_ENGINE_SCORE = "4195218"
    SANDBOX_SCORE = "4195474"
    VERDICT = "4195730"
    BEHAVIORS = "4197784"
