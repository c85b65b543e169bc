"""
Tests for access token resolution and shop domain validation.
"""
from types import SimpleNamespace

import pytest
from cryptography.fernet import Fernet

from storesync.exceptions import CredentialError, InvalidShopDomainError, MissingCredentialError
from storesync.utils.credentials import encrypt_access_token, resolve_access_token
from storesync.utils.helpers import normalize_shop_domain


def _tenant(token):
    return SimpleNamespace(id=1, access_token=token)


class TestResolveAccessToken:

    def test_plaintext_without_key(self):
        assert resolve_access_token(_tenant("shpat_plain")) == "shpat_plain"

    def test_missing_token(self):
        with pytest.raises(MissingCredentialError):
            resolve_access_token(_tenant(None))

    def test_encrypted_round_trip(self):
        key = Fernet.generate_key().decode()
        stored = encrypt_access_token("shpat_secret", key=key)

        assert stored != "shpat_secret"
        assert resolve_access_token(_tenant(stored), key=key) == "shpat_secret"

    def test_plaintext_with_key_is_rejected(self):
        key = Fernet.generate_key().decode()

        with pytest.raises(CredentialError):
            resolve_access_token(_tenant("shpat_plain"), key=key)

    def test_wrong_key(self):
        stored = encrypt_access_token("shpat_secret", key=Fernet.generate_key().decode())

        with pytest.raises(CredentialError):
            resolve_access_token(_tenant(stored), key=Fernet.generate_key().decode())

    def test_malformed_key(self):
        with pytest.raises(CredentialError):
            resolve_access_token(_tenant("anything"), key="not-a-fernet-key")


class TestShopDomain:

    @pytest.mark.parametrize("raw", [
        "acme.myshopify.com",
        "ACME.myshopify.com",
        "https://acme.myshopify.com/",
        " acme-store.myshopify.com ",
    ])
    def test_valid(self, raw):
        assert normalize_shop_domain(raw).endswith(".myshopify.com")

    @pytest.mark.parametrize("raw", [None, "", "acme.com", "evil.com/acme.myshopify.com", "-acme.myshopify.com"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidShopDomainError):
            normalize_shop_domain(raw)
