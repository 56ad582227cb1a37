"""
Tests for anti-forgery tokens.
"""

import uuid

import pytest

from src.kernel.exceptions import AuthorizationError
from src.kernel.security.csrf import generate_csrf_token, verify_csrf_token


USER_ID = uuid.uuid4()
JOURNAL_ID = uuid.uuid4()


def test_token_is_stable():
    assert generate_csrf_token(USER_ID, JOURNAL_ID, "s") == generate_csrf_token(USER_ID, JOURNAL_ID, "s")


def test_token_depends_on_journal_and_secret():
    token = generate_csrf_token(USER_ID, JOURNAL_ID, "s")
    assert token != generate_csrf_token(USER_ID, uuid.uuid4(), "s")
    assert token != generate_csrf_token(USER_ID, JOURNAL_ID, "other")


def test_valid_token_passes():
    verify_csrf_token(generate_csrf_token(USER_ID, JOURNAL_ID), USER_ID, JOURNAL_ID)


@pytest.mark.parametrize("token", [None, "", "deadbeef"])
def test_bad_token_fails_closed(token):
    with pytest.raises(AuthorizationError):
        verify_csrf_token(token, USER_ID, JOURNAL_ID)


def test_token_for_other_user_rejected():
    token = generate_csrf_token(uuid.uuid4(), JOURNAL_ID)
    with pytest.raises(AuthorizationError):
        verify_csrf_token(token, USER_ID, JOURNAL_ID)
