"""
Tests for CredentialValidator.
"""

import pytest

from auth.validators import CredentialValidator, FieldError, errors_as_dict


@pytest.fixture
def validator():
    return CredentialValidator()


def _fields(errors):
    return errors_as_dict(errors)


class TestValidateRegistration:
    def test_valid_input(self, validator):
        assert validator.validate_registration("Ada Lovelace", "ada@example.com", "Str0ngPass!23") == []

    def test_missing_fields_report_required_only(self, validator):
        fields = _fields(validator.validate_registration(None, "", None))
        assert fields == {
            "name": ["The name field is required."],
            "email": ["The email field is required."],
            "password": ["The password field is required."],
        }

    def test_name_too_short(self, validator):
        fields = _fields(validator.validate_registration("A", "ada@example.com", "Str0ngPass!23"))
        assert list(fields) == ["name"]

    def test_name_too_long(self, validator):
        fields = _fields(validator.validate_registration("A" * 256, "ada@example.com", "Str0ngPass!23"))
        assert "name" in fields

    def test_name_boundaries_accepted(self, validator):
        assert validator.validate_registration("Al", "al@example.com", "Str0ngPass!23") == []
        assert validator.validate_registration("A" * 255, "al@example.com", "Str0ngPass!23") == []

    @pytest.mark.parametrize("email", ["not-an-email", "ada@", "@example.com", "ada example@example.com"])
    def test_invalid_email(self, validator, email):
        fields = _fields(validator.validate_registration("Ada", email, "Str0ngPass!23"))
        assert fields["email"] == ["The email must be a valid email address."]

    def test_email_too_long(self, validator):
        email = "a" * 60 + "@" + ".".join(["b" * 60] * 4) + ".com"
        fields = _fields(validator.validate_registration("Ada", email, "Str0ngPass!23"))
        assert any("255" in m for m in fields["email"])

    @pytest.mark.parametrize(
        "password, missing",
        [
            ("str0ngpass!23", "uppercase"),
            ("STR0NGPASS!23", "lowercase"),
            ("StrongPass!!!", "digit"),
            ("Str0ngPass123", "special"),
        ],
    )
    def test_password_missing_character_class(self, validator, password, missing):
        fields = _fields(validator.validate_registration("Ada", "ada@example.com", password))
        assert len(fields["password"]) == 1
        assert missing in fields["password"][0]

    def test_password_too_short(self, validator):
        fields = _fields(validator.validate_registration("Ada", "ada@example.com", "Sh0rt!pass"))
        assert fields["password"] == ["The password must be at least 12 characters."]

    def test_password_violations_accumulate(self, validator):
        fields = _fields(validator.validate_registration("Ada", "ada@example.com", "abc"))
        # length, uppercase, digit, special
        assert len(fields["password"]) == 4

    def test_every_field_reported_at_once(self, validator):
        errors = validator.validate_registration("A", "nope", "abc")
        assert {e.field for e in errors} == {"name", "email", "password"}

    def test_custom_special_characters(self):
        validator = CredentialValidator(special_characters="^~")
        assert validator.validate_registration("Ada", "ada@example.com", "Str0ngPass~23") == []
        fields = _fields(validator.validate_registration("Ada", "ada@example.com", "Str0ngPass!23"))
        assert "(^~)" in fields["password"][0]

    def test_empty_special_characters_rejected(self):
        with pytest.raises(ValueError):
            CredentialValidator(special_characters="")


class TestValidateLogin:
    def test_valid_input(self, validator):
        assert validator.validate_login("ada@example.com", "whatever") == []

    def test_weak_password_is_not_rechecked(self, validator):
        assert validator.validate_login("ada@example.com", "x") == []

    def test_missing_fields(self, validator):
        fields = _fields(validator.validate_login("", ""))
        assert set(fields) == {"email", "password"}

    def test_invalid_email(self, validator):
        fields = _fields(validator.validate_login("nope", "whatever"))
        assert list(fields) == ["email"]


class TestValidateProfileUpdate:
    def test_nothing_provided(self, validator):
        assert validator.validate_profile_update() == []

    def test_only_provided_fields_checked(self, validator):
        errors = validator.validate_profile_update(name="Grace Hopper")
        assert errors == []

    def test_bad_password(self, validator):
        fields = _fields(validator.validate_profile_update(password="weak"))
        assert list(fields) == ["password"]


def test_errors_as_dict_merges_same_field():
    errors = [FieldError("email", ["a"]), FieldError("email", ["b"]), FieldError("name", ["c"])]
    assert errors_as_dict(errors) == {"email": ["a", "b"], "name": ["c"]}
