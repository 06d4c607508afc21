"""Unit tests for FakeUserRepository: verifies Port contract compliance."""

import unittest

from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import DuplicateError
from domain.model.user import ProfileUpdate, User


class TestFakeUserRepository(unittest.TestCase):
    """Tests that FakeUserRepository correctly implements UserRepository Protocol."""

    def setUp(self):
        self.repo = FakeUserRepository()
        self.update = ProfileUpdate(
            name='Ada Lovelace', address_line1='12 St James Sq', city='London', country='UK',
        )

    # ── create + lookups ──────────────────────────────────────

    def test_create_and_get_by_id(self):
        user = self.repo.create(auth0_id='auth0|1', email='ada@example.com', name='')

        self.assertIsInstance(user, User)
        self.assertEqual(self.repo.get_by_id(user.id), user)
        self.assertEqual(user.auth0_id, 'auth0|1')
        self.assertIsNone(user.address_line1)

    def test_get_by_auth0_id(self):
        user = self.repo.create(auth0_id='auth0|1', email='ada@example.com', name='')

        self.assertEqual(self.repo.get_by_auth0_id('auth0|1'), user)
        self.assertIsNone(self.repo.get_by_auth0_id('auth0|other'))

    def test_create_same_subject_twice_raises_duplicate(self):
        self.repo.create(auth0_id='auth0|1', email='ada@example.com', name='')

        with self.assertRaises(DuplicateError):
            self.repo.create(auth0_id='auth0|1', email='ada@example.com', name='')
        self.assertEqual(len(self.repo.store), 1)

    def test_get_by_id_returns_none_for_missing(self):
        self.assertIsNone(self.repo.get_by_id('nonexistent'))

    # ── update_profile ────────────────────────────────────────

    def test_update_profile_overwrites_mutable_fields_only(self):
        user = self.repo.create(auth0_id='auth0|1', email='ada@example.com', name='')

        updated = self.repo.update_profile(user.id, self.update)

        self.assertEqual(updated.name, 'Ada Lovelace')
        self.assertEqual(updated.address_line1, '12 St James Sq')
        self.assertEqual(updated.city, 'London')
        self.assertEqual(updated.country, 'UK')
        self.assertEqual(updated.id, user.id)
        self.assertEqual(updated.auth0_id, 'auth0|1')
        self.assertEqual(updated.email, 'ada@example.com')
        self.assertEqual(updated.created_at, user.created_at)
        self.assertEqual(self.repo.get_by_id(user.id), updated)

    def test_update_profile_returns_none_for_missing(self):
        self.assertIsNone(self.repo.update_profile('nonexistent', self.update))


if __name__ == '__main__':
    unittest.main()
