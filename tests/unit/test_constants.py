"""Unit tests for constant catalogs and attribute ids."""

import json

from tie_client.attributes import (
    AtdAttrib,
    CertEnterpriseAttrib,
    CertGtiAttrib,
    EnterpriseAttrib,
    FileEnterpriseAttrib,
    FileGtiAttrib,
)
from tie_client.constants import (
    AtdTrustLevel,
    CertProvider,
    CertRepChangeEventProp,
    CertReputationProp,
    FileProvider,
    FileRepChangeEventProp,
    FileReputationProp,
    FileType,
    FirstRefProp,
    HashType,
    TrustLevel,
)


class TestCatalogs:
    """Tests for enumerated codes."""

    def test_trust_levels(self):
        assert TrustLevel.KNOWN_TRUSTED_INSTALLER == 100
        assert TrustLevel.KNOWN_TRUSTED == 99
        assert TrustLevel.UNKNOWN == 50
        assert TrustLevel.KNOWN_MALICIOUS == 1
        assert TrustLevel.NOT_SET == 0

    def test_atd_trust_levels(self):
        assert AtdTrustLevel.KNOWN_TRUSTED == -1
        assert AtdTrustLevel.KNOWN_MALICIOUS == 5
        assert AtdTrustLevel.NOT_SET == -2

    def test_providers(self):
        assert [int(p) for p in FileProvider] == [1, 3, 5, 7, 15]
        assert [int(p) for p in CertProvider] == [2, 4]

    def test_composite_file_types(self):
        assert FileType.PEEXE == FileType.PE + FileType.EXE
        assert FileType.DLL == FileType.PE + FileType.DLLNONPE
        assert FileType.JAR == 4328554496

    def test_hash_types_serialize_as_strings(self):
        assert json.dumps({"type": HashType.SHA256}) == '{"type": "sha256"}'
        assert HashType("md5") is HashType.MD5

    def test_codes_usable_as_wire_keys(self):
        reputations = {1: "gti"}
        assert reputations[FileProvider.GTI] == "gti"

    def test_has_value(self):
        assert TrustLevel.has_value(99)
        assert not TrustLevel.has_value(42)
        assert not TrustLevel.has_value("high")
        assert not TrustLevel.has_value(None)
        assert FileType.has_value(18)
        assert not FileType.has_value(3)

    def test_name_of(self):
        assert TrustLevel.name_of(85) == "MOST_LIKELY_TRUSTED"
        assert FileProvider.name_of(7) == "MWG"
        assert FileProvider.name_of(42) == "42"
        assert CertProvider.name_of(42, "unknown") == "unknown"


class TestPropertyCatalogs:
    """Tests for wire property names."""

    def test_reputation_props(self):
        assert FileReputationProp.PROVIDER_ID == "providerId"
        assert FileReputationProp.TRUST_LEVEL == "trustLevel"
        assert FileReputationProp.CREATE_DATE == "createDate"
        assert CertReputationProp.OVERRIDDEN == "overridden"

    def test_change_event_props(self):
        assert FileRepChangeEventProp.NEW_REPUTATIONS == "newReputations"
        assert FileRepChangeEventProp.RELATIONSHIPS == "relationships"
        assert CertRepChangeEventProp.PUBLIC_KEY_SHA1 == "publicKeySha1"

    def test_first_ref_props(self):
        assert FirstRefProp.DATE == "date"
        assert FirstRefProp.SYSTEM_GUID == "agentGuid"


class TestAttributeIds:
    """Tests for reputation attribute identifiers."""

    def test_enterprise_ids_are_strings(self):
        assert EnterpriseAttrib.SERVER_VERSION == "2139285"
        assert FileEnterpriseAttrib.SERVER_VERSION == "2139285"
        assert CertEnterpriseAttrib.SERVER_VERSION == "2139285"
        assert FileEnterpriseAttrib.PREVALENCE == "2101652"
        assert FileEnterpriseAttrib.FIRST_CONTACT == "2102165"
        assert FileEnterpriseAttrib.MIN_LOCAL_REP == "2112148"

    def test_provider_specific_ids(self):
        assert FileGtiAttrib.FIRST_CONTACT == "2101908"
        assert FileGtiAttrib.PREVALENCE == "2102421"
        assert CertGtiAttrib.PREVALENCE == "2108821"
        assert CertEnterpriseAttrib.PREVALENCE == "2109333"

    def test_atd_ids(self):
        assert AtdAttrib.GAM_SCORE == "4194962"
        assert AtdAttrib.SANDBOX_SCORE == "4195474"
        assert AtdAttrib.VERDICT == "4195730"
