import unittest
from unittest.mock import patch

from backend.auth import (
    GoogleIdentityVerifier,
    InvalidTokenError,
    check_admin_password,
)
from shared.types import User


class AdminPasswordTests(unittest.TestCase):
    def test_matches_configured_password(self):
        self.assertTrue(check_admin_password("segreto", "segreto"))
        self.assertFalse(check_admin_password("sbagliato", "segreto"))

    def test_unconfigured_password_rejects_everything(self):
        self.assertFalse(check_admin_password(None, None))
        self.assertFalse(check_admin_password("", ""))
        self.assertFalse(check_admin_password("anything", None))


class UserProfileTests(unittest.TestCase):
    def test_name_is_split_into_first_and_last(self):
        user = User.from_profile(
            {
                "sub": "123",
                "name": "Anna Maria Greco",
                "email": "anna@example.test",
                "picture": "https://example.test/anna.png",
            }
        )
        self.assertEqual(user.id, "123")
        self.assertEqual(user.first_name, "Anna")
        self.assertEqual(user.last_name, "Maria Greco")
        self.assertEqual(user.email, "anna@example.test")
        self.assertEqual(user.avatar, "https://example.test/anna.png")

    def test_single_or_missing_name(self):
        self.assertEqual(User.from_profile({"sub": "1", "name": "Cher"}).last_name, "")
        nameless = User.from_profile({"sub": "2"})
        self.assertEqual((nameless.first_name, nameless.last_name), ("", ""))


class GoogleIdentityVerifierTests(unittest.TestCase):
    @patch("backend.auth.id_token.verify_oauth2_token")
    def test_valid_token(self, mock_verify):
        mock_verify.return_value = {"sub": "google-1", "name": "Luca Bianchi"}
        verifier = GoogleIdentityVerifier("client-id")

        user = verifier.verify("token")

        self.assertEqual(user.id, "google-1")
        self.assertEqual(user.first_name, "Luca")
        args, _ = mock_verify.call_args
        self.assertEqual(args[0], "token")
        self.assertEqual(args[2], "client-id")

    @patch("backend.auth.id_token.verify_oauth2_token")
    def test_invalid_token(self, mock_verify):
        mock_verify.side_effect = ValueError("Token expired")
        with self.assertRaises(InvalidTokenError):
            GoogleIdentityVerifier("client-id").verify("token")

    @patch("backend.auth.id_token.verify_oauth2_token")
    def test_token_without_subject(self, mock_verify):
        mock_verify.return_value = {"name": "Nobody"}
        with self.assertRaises(InvalidTokenError):
            GoogleIdentityVerifier("client-id").verify("token")


if __name__ == "__main__":
    unittest.main()
