"""Tests for the ordered role type."""

from types import SimpleNamespace

from django.test import SimpleTestCase

from accounts.roles import ROLE_ORDER, Role, coerce_role, normalize_roles, role_of


class RoleOrderTests(SimpleTestCase):
    """Role ranking helpers."""

    def test_total_order(self):
        self.assertEqual(ROLE_ORDER, [Role.USER, Role.ADMIN, Role.SUPER_ADMIN])
        self.assertTrue(Role.SUPER_ADMIN.outranks(Role.ADMIN))
        self.assertTrue(Role.ADMIN.outranks(Role.USER))
        self.assertFalse(Role.ADMIN.outranks(Role.ADMIN))

    def test_at_least_is_inclusive(self):
        self.assertTrue(Role.ADMIN.at_least(Role.ADMIN))
        self.assertTrue(Role.SUPER_ADMIN.at_least(Role.USER))
        self.assertFalse(Role.USER.at_least(Role.ADMIN))

    def test_at_least_accepts_plain_strings(self):
        self.assertTrue(Role.ADMIN.at_least('user'))

    def test_admin_override(self):
        self.assertFalse(Role.USER.has_admin_override)
        self.assertTrue(Role.ADMIN.has_admin_override)
        self.assertTrue(Role.SUPER_ADMIN.has_admin_override)


class RoleCoercionTests(SimpleTestCase):
    """Parsing roles from untrusted input."""

    def test_coerce_known_and_unknown(self):
        self.assertEqual(coerce_role('admin'), Role.ADMIN)
        self.assertEqual(coerce_role(Role.USER), Role.USER)
        self.assertIsNone(coerce_role('owner'))
        self.assertIsNone(coerce_role(None))

    def test_normalize_dedupes_and_sorts_by_rank(self):
        self.assertEqual(
            normalize_roles(['super_admin', 'user', 'user', 'admin']),
            ['user', 'admin', 'super_admin']
        )

    def test_normalize_empty(self):
        self.assertEqual(normalize_roles([]), [])
        self.assertEqual(normalize_roles(None), [])

    def test_normalize_rejects_unknown(self):
        with self.assertRaises(ValueError):
            normalize_roles(['user', 'guest'])

    def test_role_of_falls_back_to_user(self):
        self.assertEqual(role_of(SimpleNamespace(role='admin')), Role.ADMIN)
        self.assertEqual(role_of(SimpleNamespace(role='bogus')), Role.USER)
        self.assertEqual(role_of(object()), Role.USER)
