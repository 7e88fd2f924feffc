"""Auth service and store tests against a temporary sqlite database."""

import os
import sqlite3
import tempfile
import unittest
from unittest.mock import patch

from auth import DUMMY_PASSWORD_HASH, SESSION_KEY, AuthService
from errors import AuthError, ConflictError, InternalError, ValidationError
from sessions import SessionStore
from storage import CredentialStore


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class AuthServiceTest(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.temp_dir.name, 'auth.db')
        self.clock = FakeClock()
        self.users = CredentialStore(db_path)
        self.sessions = SessionStore(db_path, lifetime=60, clock=self.clock)
        self.users.init_db()
        self.sessions.init_db()
        self.auth = AuthService(self.users, self.sessions)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_register_hashes_password_and_normalizes_email(self) -> None:
        session = {}
        user = self.auth.register('  carol ', ' Carol@Example.COM ', 'hunter22', session)

        self.assertEqual(user, {'username': 'carol', 'email': 'carol@example.com'})
        stored = self.users.find_by_email('carol@example.com')
        self.assertNotEqual(stored['password_hash'], 'hunter22')
        self.assertNotIn('hunter22', stored['password_hash'])
        self.assertIn(SESSION_KEY, session)

    def test_register_validation(self) -> None:
        cases = [
            ('', 'a@example.com', 'secret1'),
            ('ab', 'a@example.com', 'secret1'),
            ('abc', 'not-an-email', 'secret1'),
            ('abc', 'a@example.com', '12345'),
        ]
        for username, email, password in cases:
            with self.assertRaises(ValidationError):
                self.auth.register(username, email, password, {})

    def test_store_unique_constraint_closes_signup_race(self) -> None:
        self.auth.register('dave', 'dave@example.com', 'secret1', {})

        # Simulate a concurrent sign-up that passed the existence check first.
        with patch.object(self.users, 'exists', return_value=False):
            with self.assertRaises(ConflictError):
                self.auth.register('dave2', 'DAVE@example.com', 'secret1', {})

    def test_sign_in_replaces_previous_session(self) -> None:
        session = {}
        self.auth.register('erin', 'erin@example.com', 'secret1', session)
        first = session[SESSION_KEY]

        self.auth.sign_in('erin@example.com', 'secret1', session)

        self.assertNotEqual(session[SESSION_KEY], first)
        self.assertIsNone(self.sessions.get(first))

    def test_sign_in_errors_share_message(self) -> None:
        self.auth.register('frank', 'frank@example.com', 'secret1', {})

        with self.assertRaises(AuthError) as wrong_password:
            self.auth.sign_in('frank@example.com', 'wrong-pass', {})
        with self.assertRaises(AuthError) as unknown:
            self.auth.sign_in('ghost@example.com', 'wrong-pass', {})

        self.assertEqual(wrong_password.exception.message, unknown.exception.message)

    def test_unknown_email_still_checks_a_hash(self) -> None:
        with patch('auth.check_password_hash', return_value=True) as mock_check:
            with self.assertRaises(AuthError):
                self.auth.sign_in('ghost@example.com', 'secret1', {})

        mock_check.assert_called_once_with(DUMMY_PASSWORD_HASH, 'secret1')

    def test_session_slides_then_expires(self) -> None:
        session = {}
        self.auth.register('gina', 'gina@example.com', 'secret1', session)

        self.clock.now += 50
        self.assertTrue(self.auth.check_auth(session)['authenticated'])

        # Touched at +50, so still alive at +100.
        self.clock.now += 50
        self.assertEqual(self.auth.check_auth(session), {'authenticated': True, 'username': 'gina'})

        self.clock.now += 61
        self.assertEqual(self.auth.check_auth(session), {'authenticated': False})
        self.assertNotIn(SESSION_KEY, session)

    def test_check_auth_never_fails(self) -> None:
        session = {SESSION_KEY: 'whatever'}
        with patch.object(self.sessions, 'get', side_effect=sqlite3.OperationalError('locked')):
            self.assertEqual(self.auth.check_auth(session), {'authenticated': False})

    def test_sign_out_store_failure_is_internal_error(self) -> None:
        session = {}
        self.auth.register('hank', 'hank@example.com', 'secret1', session)

        with patch.object(self.sessions, 'destroy', side_effect=sqlite3.OperationalError('disk I/O error')):
            with self.assertRaises(InternalError):
                self.auth.sign_out(session)

    def test_purge_expired(self) -> None:
        self.sessions.create(1, 'ivy')
        self.clock.now += 61
        self.assertEqual(self.sessions.purge_expired(), 1)


if __name__ == '__main__':
    unittest.main()
