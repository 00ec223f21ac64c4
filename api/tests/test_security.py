import os
import unittest
from unittest.mock import patch

from auth import security


class PasswordTests(unittest.TestCase):
    def test_hash_and_verify(self):
        hashed = security.hash_password("correct-horse")
        self.assertNotEqual(hashed, "correct-horse")
        self.assertTrue(security.verify_password("correct-horse", hashed))
        self.assertFalse(security.verify_password("wrong-horse", hashed))

    def test_verify_rejects_garbage_hash(self):
        self.assertFalse(security.verify_password("anything", "not-a-bcrypt-hash"))
        self.assertFalse(security.verify_password("", ""))

    def test_empty_password_cannot_be_hashed(self):
        with self.assertRaises(security.AuthSecurityError):
            security.hash_password("")


class AccessTokenTests(unittest.TestCase):
    def test_round_trip_claims(self):
        token = security.build_access_token(user_id="65f0c0ffee0000000000abcd", email="a@b.io")
        payload = security.decode_access_token(token)
        self.assertEqual(payload["sub"], "65f0c0ffee0000000000abcd")
        self.assertEqual(payload["type"], "access")
        self.assertEqual(payload["role"], "user")

    def test_expired_token(self):
        with patch.object(security, "now_epoch_s", return_value=1_000_000):
            token = security.build_access_token(user_id="x", email="a@b.io")
        with self.assertRaisesRegex(security.AuthSecurityError, "expired"):
            security.decode_access_token(token)

    def test_wrong_secret(self):
        with patch.dict(os.environ, {"JWT_SECRET": "one-secret"}):
            token = security.build_access_token(user_id="x", email="a@b.io")
        with patch.dict(os.environ, {"JWT_SECRET": "another-secret"}):
            with self.assertRaisesRegex(security.AuthSecurityError, "Invalid access token"):
                security.decode_access_token(token)

    def test_empty_token(self):
        with self.assertRaises(security.AuthSecurityError):
            security.decode_access_token("  ")


class RefreshTokenTests(unittest.TestCase):
    def test_tokens_are_random_and_hashes_stable(self):
        first, second = security.build_refresh_token(), security.build_refresh_token()
        self.assertNotEqual(first, second)
        self.assertEqual(security.hash_refresh_token(first), security.hash_refresh_token(first))
        self.assertEqual(len(security.hash_refresh_token(first)), 64)


if __name__ == "__main__":
    unittest.main()
