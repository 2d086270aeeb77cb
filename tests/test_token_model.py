"""
Tests for token persistence and verification.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from authcore.auth.tokens import TokenScope, generate_token, hash_token
from authcore.db import Models
from authcore.db import users as users_module
from authcore.db.models import TokenRecord, User
from authcore.db.tokens import TokenModel
from authcore.db.users import UserModel
from authcore.errors import NotFoundError, PersistenceError, ValidationError

ONE_HOUR = timedelta(hours=1)


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def models(db_session):
    return Models(db_session)


class TestIssue:
    """Issuing and storing tokens."""

    def test_new_persists_digest_only(self, models, user, db_session):
        token = models.tokens.new(user.id, ONE_HOUR, TokenScope.activation)

        rows = db_session.query(TokenRecord).all()
        assert len(rows) == 1
        row = rows[0]
        assert row.hash == hash_token(token.plaintext)
        assert row.user_id == user.id
        assert row.scope == "activation"
        assert row.expiry == token.expiry
        assert token.plaintext.encode() not in row.hash

    def test_multiple_tokens_coexist(self, models, user):
        first = models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)
        second = models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        assert models.users.get_for_token(TokenScope.authentication, first.plaintext).id == user.id
        assert models.users.get_for_token(TokenScope.authentication, second.plaintext).id == user.id

    def test_duplicate_hash_is_generic_persistence_error(self, models, user, db_session):
        token = generate_token(user.id, ONE_HOUR, TokenScope.activation)
        models.tokens.insert(token)

        with pytest.raises(PersistenceError):
            models.tokens.insert(token)
        assert db_session.query(TokenRecord).count() == 1

    def test_failed_insert_discards_token(self, models, db_session):
        """An unknown owner violates the foreign key; nothing is stored."""
        with pytest.raises(PersistenceError):
            models.tokens.new("no-such-user", ONE_HOUR, TokenScope.activation)
        assert db_session.query(TokenRecord).count() == 0


class TestVerify:
    """Resolving a token back to its owner."""

    def test_round_trip(self, models, user):
        token = models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        owner = models.users.get_for_token(TokenScope.authentication, token.plaintext)

        assert owner.id == user.id
        assert owner.username == "alice"

    def test_expired_token(self, models, user):
        token = models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        with pytest.raises(NotFoundError):
            models.users.get_for_token(
                TokenScope.authentication, token.plaintext, now=token.expiry
            )
        with pytest.raises(NotFoundError):
            models.users.get_for_token(
                TokenScope.authentication,
                token.plaintext,
                now=token.expiry + timedelta(seconds=1),
            )

        owner = models.users.get_for_token(
            TokenScope.authentication,
            token.plaintext,
            now=token.expiry - timedelta(seconds=1),
        )
        assert owner.id == user.id

    def test_negative_ttl_is_already_expired(self, models, user):
        token = models.tokens.new(user.id, -ONE_HOUR, TokenScope.authentication)

        with pytest.raises(NotFoundError):
            models.users.get_for_token(TokenScope.authentication, token.plaintext)

    def test_scope_isolation(self, models, user):
        token = models.tokens.new(user.id, ONE_HOUR, TokenScope.activation)

        with pytest.raises(NotFoundError):
            models.users.get_for_token(TokenScope.authentication, token.plaintext)
        with pytest.raises(NotFoundError):
            models.users.get_for_token(TokenScope.password_reset, token.plaintext)

    def test_wrong_secret(self, models, user):
        models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        with pytest.raises(NotFoundError):
            models.users.get_for_token(TokenScope.authentication, "A" * 26)

    def test_failures_are_indistinguishable(self, models, user):
        token = models.tokens.new(user.id, ONE_HOUR, TokenScope.activation)
        messages = set()

        for scope, plaintext, now in [
            (TokenScope.activation, "A" * 26, None),
            (TokenScope.authentication, token.plaintext, None),
            (TokenScope.activation, token.plaintext, token.expiry),
        ]:
            with pytest.raises(NotFoundError) as exc_info:
                models.users.get_for_token(scope, plaintext, now=now)
            messages.add((type(exc_info.value), str(exc_info.value)))

        assert len(messages) == 1

    @pytest.mark.parametrize("plaintext", ["", "short", "A" * 27])
    def test_malformed_plaintext_never_reaches_store(self, plaintext, monkeypatch):
        db = MagicMock()
        digest = MagicMock()
        monkeypatch.setattr(users_module, "hash_token", digest)

        with pytest.raises(ValidationError) as exc_info:
            UserModel(db).get_for_token(TokenScope.authentication, plaintext)

        assert "token" in exc_info.value.errors
        db.query.assert_not_called()
        digest.assert_not_called()

    def test_verification_does_not_mutate(self, models, user, db_session):
        token = models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        models.users.get_for_token(TokenScope.authentication, token.plaintext)
        with pytest.raises(NotFoundError):
            models.users.get_for_token(TokenScope.activation, token.plaintext)

        assert db_session.query(TokenRecord).count() == 1
        models.users.get_for_token(TokenScope.authentication, token.plaintext)


class TestRevoke:
    """Bulk revocation by scope and owner."""

    def test_revocation_is_scoped(self, models, user):
        activation = models.tokens.new(user.id, ONE_HOUR, TokenScope.activation)
        authentication = models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        deleted = models.tokens.delete_all_for_user(TokenScope.activation, user.id)

        assert deleted == 1
        with pytest.raises(NotFoundError):
            models.users.get_for_token(TokenScope.activation, activation.plaintext)
        owner = models.users.get_for_token(TokenScope.authentication, authentication.plaintext)
        assert owner.id == user.id

    def test_revocation_is_per_owner(self, models, make_user):
        alice = make_user()
        bob = make_user(username="bob", email="bob@example.com")
        models.tokens.new(alice.id, ONE_HOUR, TokenScope.authentication)
        bob_token = models.tokens.new(bob.id, ONE_HOUR, TokenScope.authentication)

        models.tokens.delete_all_for_user(TokenScope.authentication, alice.id)

        assert models.users.get_for_token(TokenScope.authentication, bob_token.plaintext).id == bob.id

    def test_deleting_nothing_is_not_an_error(self, models, user):
        assert models.tokens.delete_all_for_user(TokenScope.password_reset, user.id) == 0
        assert models.tokens.delete_all_for_user(TokenScope.password_reset, user.id) == 0

    def test_deleting_user_removes_tokens(self, models, user, db_session):
        models.tokens.new(user.id, ONE_HOUR, TokenScope.authentication)

        db_session.delete(db_session.get(User, user.id))
        db_session.commit()

        assert db_session.query(TokenRecord).count() == 0


class TestTokenModelStandalone:
    def test_new_does_not_need_users_model(self, user, db_session):
        token = TokenModel(db_session).new(user.id, ONE_HOUR, "password-reset")
        assert token.scope is TokenScope.password_reset
