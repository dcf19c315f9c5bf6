"""
PostDesk Backend — Hasher & Phone Validator Tests
===================================================

Exercises the real argon2-cffi and phonenumbers implementations (with cheap
Argon2 parameters).
"""

import pytest
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from postdesk.services.hashing import Argon2Hasher, Hasher
from postdesk.services.phone import LibPhoneNumberValidator


class TestArgon2Hasher:
    def setup_method(self):
        self.hasher = Argon2Hasher(time_cost=1, memory_cost=1024, parallelism=1)

    def test_hash_is_argon2id_and_salted(self):
        first = self.hasher.hash("StrongP@ss1")
        second = self.hasher.hash("StrongP@ss1")

        assert first.startswith("$argon2id$")
        assert first != second
        assert "StrongP@ss1" not in first

    def test_digest_verifies_with_argon2(self):
        digest = self.hasher.hash("StrongP@ss1")

        assert PasswordHasher().verify(digest, "StrongP@ss1") is True
        with pytest.raises(VerifyMismatchError):
            PasswordHasher().verify(digest, "wrong")

    def test_interface_exposes_only_hash(self):
        assert Hasher.__abstractmethods__ == frozenset({"hash"})


class TestLibPhoneNumberValidator:
    def setup_method(self):
        self.validator = LibPhoneNumberValidator()

    @pytest.mark.parametrize("number", ["+442083661177", "+16502530000"])
    def test_valid_international_numbers(self, number):
        assert self.validator.is_valid(number) is True

    @pytest.mark.parametrize("number", ["", "12345", "not-a-phone", "+999123", "02083661177"])
    def test_invalid_numbers(self, number):
        assert self.validator.is_valid(number) is False

    def test_default_region_allows_national_format(self):
        assert LibPhoneNumberValidator(default_region="GB").is_valid("02083661177") is True
