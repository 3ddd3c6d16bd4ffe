"""Tests for at-rest encryption."""

import pytest

from clearcare.core.encryption import EncryptionConfigError, EncryptionService


KEY = "k" * 32


def test_encrypted_value_has_prefix_and_decrypts():
    service = EncryptionService(KEY)
    cipher = service.encrypt("Take 500mg with food")

    assert cipher.startswith("enc:")
    assert "500mg" not in cipher
    assert service.decrypt(cipher) == "Take 500mg with food"


def test_same_plaintext_encrypts_differently():
    service = EncryptionService(KEY)
    assert service.encrypt("same") != service.encrypt("same")


def test_empty_and_none():
    service = EncryptionService(KEY)
    assert service.encrypt("") == ""
    assert service.encrypt(None) == ""
    assert service.decrypt(None) == ""


def test_passthrough_without_key():
    service = EncryptionService("")
    assert not service.enabled
    assert service.encrypt("plain") == "plain"
    assert service.decrypt("plain") == "plain"


def test_short_key_disables_encryption():
    assert not EncryptionService("too-short").enabled


def test_legacy_plaintext_returned_unchanged():
    service = EncryptionService(KEY)
    assert service.decrypt("not encrypted") == "not encrypted"


def test_wrong_key_returns_stored_text():
    cipher = EncryptionService(KEY).encrypt("secret")
    assert EncryptionService("x" * 32).decrypt(cipher) == cipher


def test_production_requires_key():
    with pytest.raises(EncryptionConfigError):
        EncryptionService("", production=True)
    assert EncryptionService(KEY, production=True).enabled


def test_json_blob_wrapped_and_restored():
    service = EncryptionService(KEY)
    blob = service.encrypt_json({"name": "Amoxicillin", "dosage": "500"})

    assert set(blob) == {"_encrypted"}
    assert blob["_encrypted"].startswith("enc:")
    assert service.decrypt_json(blob) == {"name": "Amoxicillin", "dosage": "500"}
    assert service.encrypt_json(None) is None


def test_plain_json_blob_passes_through():
    service = EncryptionService(KEY)
    assert service.decrypt_json({"name": "legacy"}) == {"name": "legacy"}


def test_field_helpers_skip_missing_and_none():
    service = EncryptionService(KEY)
    encrypted = service.encrypt_fields({"a": "1", "b": None}, ("a", "b", "c"))

    assert set(encrypted) == {"a"}
    decrypted = service.decrypt_fields({"a": encrypted["a"], "b": None, "x": "keep"}, ("a", "b"))
    assert decrypted == {"a": "1", "b": None, "x": "keep"}
