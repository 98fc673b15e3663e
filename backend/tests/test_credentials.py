"""Tests for API key grants, quotas and the authorizer."""

import pytest

from opencdn.errors import InvalidCredential, MissingCredential
from opencdn.services.credentials import (
    UNLIMITED,
    AdminCredential,
    ApiKeyGrant,
    CredentialStore,
    Quota,
)
from opencdn.utils.storage import BYTES_PER_MB


class TestQuota:
    def test_exact_limit_allowed(self):
        assert Quota(limit=100).allows(100) is True

    def test_one_over_limit_rejected(self):
        quota = Quota(limit=100)
        assert quota.allows(101) is False
        assert quota.exceeds(101) is True

    def test_unlimited_never_exceeds(self):
        assert UNLIMITED.is_unlimited
        assert UNLIMITED.allows(10**15) is True

    def test_from_mb(self):
        assert Quota.from_mb(5).limit == 5 * BYTES_PER_MB
        assert Quota.from_mb(None) is UNLIMITED

    def test_describe_mb(self):
        assert Quota.from_mb(50).describe_mb() == "50"
        assert UNLIMITED.describe_mb() == "unlimited"


class TestAuthorize:
    @pytest.mark.parametrize("tier", ["small", "medium", "large"])
    def test_each_tier_matches_its_key(self, credentials, api_keys, tier):
        grant = credentials.authorize(api_keys[tier])
        assert grant.tier == tier
        assert grant.key == api_keys[tier]

    def test_quotas_follow_tiers(self, credentials, api_keys):
        assert credentials.authorize(api_keys["small"]).quota.limit == 5 * BYTES_PER_MB
        assert credentials.authorize(api_keys["medium"]).quota.limit == 50 * BYTES_PER_MB
        assert credentials.authorize(api_keys["large"]).quota.is_unlimited

    @pytest.mark.parametrize("key", [None, ""])
    def test_missing_key(self, credentials, key):
        with pytest.raises(MissingCredential):
            credentials.authorize(key)

    def test_unknown_key(self, credentials):
        with pytest.raises(InvalidCredential):
            credentials.authorize("not-a-key")

    def test_case_sensitive(self, credentials, api_keys):
        with pytest.raises(InvalidCredential):
            credentials.authorize(api_keys["small"].upper())

    def test_no_partial_match(self, credentials, api_keys):
        with pytest.raises(InvalidCredential):
            credentials.authorize(api_keys["small"][:-1])
        with pytest.raises(InvalidCredential):
            credentials.authorize(api_keys["small"] + "x")


class TestStoreValidation:
    def _grant(self, tier, key):
        return ApiKeyGrant(tier=tier, key=key, quota=UNLIMITED, label=tier)

    def test_duplicate_keys_rejected(self):
        with pytest.raises(ValueError):
            CredentialStore(
                [self._grant("small", "k"), self._grant("medium", "k")],
                AdminCredential("admin", "admin"),
            )

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            CredentialStore([self._grant("small", "")], AdminCredential("admin", "admin"))

    def test_repr_hides_secret(self, credentials, api_keys):
        grant = credentials.authorize(api_keys["medium"])
        assert api_keys["medium"] not in repr(grant)


class TestAdminAndLabels:
    def test_check_admin(self, credentials):
        assert credentials.check_admin("admin", "admin") is True
        assert credentials.check_admin("admin", "wrong") is False
        assert credentials.check_admin("root", "admin") is False

    def test_labels(self, credentials):
        assert credentials.labels() == {
            "small": "Small Files (max 5MB)",
            "medium": "Medium Files (max 50MB)",
            "large": "Large Files (unlimited)",
        }

    def test_suggest_upgrade_from_small(self, credentials, api_keys):
        text = credentials.suggest_upgrade(credentials.authorize(api_keys["small"]))
        assert "Medium Files" in text
        assert "Large Files" in text

    def test_suggest_upgrade_from_medium(self, credentials, api_keys):
        text = credentials.suggest_upgrade(credentials.authorize(api_keys["medium"]))
        assert "Large Files" in text
        assert "Small Files" not in text

    def test_suggest_upgrade_from_large(self, credentials, api_keys):
        text = credentials.suggest_upgrade(credentials.authorize(api_keys["large"]))
        assert text.startswith("No API key")
