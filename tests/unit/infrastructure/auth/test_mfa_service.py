"""
Unit tests for the TOTP two-factor engine and backup codes.
"""

import re
import threading
from urllib.parse import parse_qs, unquote, urlparse

import pyotp
import pytest

from social_studio.domain.entities import TwoFactorState, User
from social_studio.domain.exceptions import TwoFactorStateException
from social_studio.infrastructure.auth import (
    TwoFactorEngine,
    digest_backup_code,
    normalize_backup_code,
)


@pytest.fixture
def user(user_repository):
    account = User(email="jane@example.com", password_hash="hash")
    user_repository.add(account)
    return account


@pytest.fixture
def enrolled(two_factor, user, user_repository, totp):
    """User with 2FA enabled; returns (user, backup_codes)."""
    enrollment = user_repository.modify(user.id, two_factor.begin_enrollment)
    codes = user_repository.modify(
        user.id, lambda current: two_factor.confirm_enrollment(current, totp(enrollment.secret))
    )
    return user_repository.get_by_id(user.id), codes


class TestEnrollment:
    def test_begin_enrollment(self, two_factor, user):
        enrollment = two_factor.begin_enrollment(user)

        assert re.fullmatch(r"[A-Z2-7]{32}", enrollment.secret)
        assert user.pending_two_factor_secret == enrollment.secret
        assert user.two_factor_enabled is False

        uri = urlparse(enrollment.provisioning_uri)
        assert uri.scheme == "otpauth"
        assert "jane@example.com" in unquote(uri.path)
        assert parse_qs(uri.query)["issuer"] == ["Social Studio"]

    def test_confirm_succeeds_exactly_once(self, two_factor, user, totp):
        enrollment = two_factor.begin_enrollment(user)
        code = totp(enrollment.secret)

        codes = two_factor.confirm_enrollment(user, code)

        assert codes is not None and len(codes) == 10
        assert user.two_factor_state == TwoFactorState.ENABLED
        assert user.two_factor_secret == enrollment.secret
        assert user.pending_two_factor_secret is None

        with pytest.raises(TwoFactorStateException):
            two_factor.confirm_enrollment(user, code)

    def test_wrong_code_keeps_pending_state(self, two_factor, user, totp):
        enrollment = two_factor.begin_enrollment(user)
        wrong = "000000" if totp(enrollment.secret) != "000000" else "111111"

        assert two_factor.confirm_enrollment(user, wrong) is None
        assert user.pending_two_factor_secret == enrollment.secret
        assert user.two_factor_state == TwoFactorState.PENDING_ENROLLMENT

        assert two_factor.confirm_enrollment(user, totp(enrollment.secret)) is not None

    @pytest.mark.parametrize("steps", [-2, -1, 1, 2])
    def test_tolerates_two_steps_of_skew(self, two_factor, user, totp, steps):
        enrollment = two_factor.begin_enrollment(user)

        assert two_factor.confirm_enrollment(user, totp(enrollment.secret, steps)) is not None

    def test_rejects_beyond_window(self, two_factor, user, totp):
        enrollment = two_factor.begin_enrollment(user)
        far = totp(enrollment.secret, 4)
        if far in {totp(enrollment.secret, s) for s in range(-2, 3)}:
            pytest.skip("code collision inside the window")

        assert two_factor.confirm_enrollment(user, far) is None

    def test_confirm_without_begin(self, two_factor, user):
        with pytest.raises(TwoFactorStateException):
            two_factor.confirm_enrollment(user, "123456")

    def test_stale_secret_after_disable_fails(self, two_factor, user, totp):
        enrollment = two_factor.begin_enrollment(user)
        two_factor.confirm_enrollment(user, totp(enrollment.secret))

        two_factor.disable(user)

        assert user.two_factor_state == TwoFactorState.DISABLED
        with pytest.raises(TwoFactorStateException):
            two_factor.confirm_enrollment(user, totp(enrollment.secret, 1))
        assert two_factor.verify_login(user, totp(enrollment.secret, 1)) is False

    def test_engine_leaves_storage_to_caller(self, two_factor, user, user_repository, totp):
        enrollment = two_factor.begin_enrollment(user)
        two_factor.confirm_enrollment(user, totp(enrollment.secret))

        stored = user_repository.get_by_id(user.id)
        assert stored.two_factor_state == TwoFactorState.DISABLED
        assert stored.backup_codes == set()

    def test_backup_codes_stored_as_digests(self, enrolled, user_repository):
        user, codes = enrolled

        stored = user_repository.get_by_id(user.id)
        assert stored.backup_codes == {digest_backup_code(c) for c in codes}
        assert not set(codes) & stored.backup_codes

    def test_backup_code_format(self, enrolled):
        _, codes = enrolled

        assert len(set(codes)) == 10
        assert all(re.fullmatch(r"[0-9A-F]{5}-[0-9A-F]{5}", c) for c in codes)


class TestLoginVerification:
    def test_verify_login(self, two_factor, enrolled, totp):
        user, _ = enrolled

        assert two_factor.verify_login(user, totp(user.two_factor_secret, 1)) is True

    def test_verify_login_does_not_mutate(self, two_factor, enrolled, totp):
        user, _ = enrolled
        before = (user.two_factor_secret, set(user.backup_codes), user.updated_at)

        two_factor.verify_login(user, totp(user.two_factor_secret, 1))
        two_factor.verify_login(user, "000000")

        assert (user.two_factor_secret, user.backup_codes, user.updated_at) == before

    @pytest.mark.parametrize("code", ["", "12345", "1234567", "abcdef"])
    def test_malformed_codes(self, two_factor, enrolled, code):
        user, _ = enrolled

        assert two_factor.verify_login(user, code) is False

    def test_replayed_code_rejected(self, two_factor, enrolled, totp):
        user, _ = enrolled
        code = totp(user.two_factor_secret, -1)

        assert two_factor.verify_login(user, code) is True
        assert two_factor.verify_login(user, code) is False

    def test_replay_allowed_without_cache(self, user_repository, user, totp):
        engine = TwoFactorEngine(user_repository, used_code_cache=None)
        engine.begin_enrollment(user)
        engine.confirm_enrollment(user, totp(user.pending_two_factor_secret))
        code = totp(user.two_factor_secret, 1)

        assert engine.verify_login(user, code) is True
        assert engine.verify_login(user, code) is True

    def test_disabled_user_never_verifies(self, two_factor, user):
        assert two_factor.verify_login(user, pyotp.TOTP(pyotp.random_base32()).now()) is False


class TestBackupCodes:
    def test_single_use(self, two_factor, enrolled, user_repository):
        user, codes = enrolled
        assert two_factor.backup_code_status(user)["remaining_codes"] == 10

        assert two_factor.verify_backup_code(user, codes[3]) is True
        assert two_factor.backup_code_status(user)["remaining_codes"] == 9
        assert len(user_repository.get_by_id(user.id).backup_codes) == 9

        assert two_factor.verify_backup_code(user, codes[3]) is False
        assert two_factor.backup_code_status(user)["remaining_codes"] == 9

    def test_unknown_code_does_not_mutate(self, two_factor, enrolled, user_repository):
        user, _ = enrolled

        assert two_factor.verify_backup_code(user, "ZZZZZ-ZZZZZ") is False
        assert len(user_repository.get_by_id(user.id).backup_codes) == 10

    def test_code_entry_is_forgiving(self, two_factor, enrolled):
        user, codes = enrolled

        assert two_factor.verify_backup_code(user, codes[0].replace("-", " ").lower())

    def test_normalize_backup_code(self):
        assert normalize_backup_code(" abcde-12345 ") == "ABCDE12345"
        assert digest_backup_code("abcde 12345") == digest_backup_code("ABCDE-12345")

    def test_concurrent_redemption_has_one_winner(self, two_factor, enrolled, user_repository):
        user, codes = enrolled
        results = []
        barrier = threading.Barrier(8)

        def redeem():
            copy = user_repository.get_by_id(user.id)
            barrier.wait()
            results.append(two_factor.verify_backup_code(copy, codes[0]))

        threads = [threading.Thread(target=redeem) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert len(user_repository.get_by_id(user.id).backup_codes) == 9

    def test_regenerate_invalidates_previous(self, two_factor, enrolled, user_repository):
        user, old_codes = enrolled

        new_codes = user_repository.modify(user.id, two_factor.regenerate_backup_codes)
        user = user_repository.get_by_id(user.id)

        assert len(new_codes) == 10
        assert not set(old_codes) & set(new_codes)
        assert two_factor.verify_backup_code(user, old_codes[0]) is False
        assert two_factor.verify_backup_code(user, new_codes[0]) is True

    def test_regenerate_requires_enabled(self, two_factor, user):
        with pytest.raises(TwoFactorStateException):
            two_factor.regenerate_backup_codes(user)

    def test_disable_clears_codes(self, two_factor, enrolled, user_repository):
        user, codes = enrolled

        user_repository.modify(user.id, two_factor.disable)
        user = user_repository.get_by_id(user.id)

        stored = user_repository.get_by_id(user.id)
        assert stored.backup_codes == set()
        assert stored.two_factor_secret is None
        assert two_factor.verify_backup_code(user, codes[0]) is False
        assert two_factor.backup_code_status(user) == {
            "two_factor_enabled": False,
            "remaining_codes": 0,
        }
