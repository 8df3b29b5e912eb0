import unittest
from unittest.mock import patch

from backend.images import InvalidImageError, build_object_key, validate_image
from backend.storage import InMemoryStorageClient, S3StorageClient


class InMemoryStorageClientTests(unittest.TestCase):
    def test_upload_returns_public_url(self):
        storage = InMemoryStorageClient()
        url = storage.upload_bytes("pupi/a.png", b"data", "image/png")
        self.assertEqual(url, "https://example.test/storage/pupi/a.png")
        self.assertEqual(storage.get_bytes("pupi/a.png"), b"data")
        with self.assertRaises(FileNotFoundError):
            storage.get_bytes("pupi/missing.png")


class S3StorageClientTests(unittest.TestCase):
    @patch("backend.storage.boto3.client")
    def test_upload_puts_public_object(self, mock_client_factory):
        mock_client = mock_client_factory.return_value
        storage = S3StorageClient(
            bucket="pupi-images",
            region="eu-south-1",
            access_key_id="key",
            secret_access_key="secret",
        )
        url = storage.upload_bytes("pupi/a.png", b"data", "image/png")

        mock_client.put_object.assert_called_once_with(
            Bucket="pupi-images",
            Key="pupi/a.png",
            Body=b"data",
            ContentType="image/png",
            ACL="public-read",
        )
        self.assertEqual(
            url, "https://pupi-images.s3.eu-south-1.amazonaws.com/pupi/a.png"
        )

    @patch("backend.storage.boto3.client")
    def test_public_url_variants(self, mock_client_factory):
        gcs = S3StorageClient(
            bucket="pupi-images",
            endpoint="https://storage.googleapis.com",
            public_base_url="https://storage.googleapis.com/pupi-images/",
        )
        self.assertEqual(
            gcs.public_url("pupi/a.png"),
            "https://storage.googleapis.com/pupi-images/pupi/a.png",
        )

        cos = S3StorageClient(
            bucket="pupi-images", endpoint="https://cos.ap-guangzhou.myqcloud.com"
        )
        self.assertEqual(
            cos.public_url("pupi/a.png"),
            "https://pupi-images.cos.ap-guangzhou.myqcloud.com/pupi/a.png",
        )


class ImageHelpersTests(unittest.TestCase):
    def test_object_key_layout(self):
        key = build_object_key("Foto Pupo.JPEG")
        self.assertRegex(key, r"^pupi/\d{13}-[a-z0-9]{7}\.jpeg$")
        self.assertTrue(build_object_key("no-extension").endswith(".jpg"))
        self.assertTrue(build_object_key(None).endswith(".jpg"))

    def test_validate_image_rejects_empty_and_non_images(self):
        with self.assertRaises(InvalidImageError):
            validate_image(b"", "image/png", 1024)
        with self.assertRaises(InvalidImageError):
            validate_image(b"data", None, 1024)
        with self.assertRaisesRegex(InvalidImageError, "10 bytes"):
            validate_image(b"x" * 11, "image/png", 10)
        limit = 5 * 1024 * 1024
        with self.assertRaisesRegex(InvalidImageError, "5MB"):
            validate_image(b"x" * (limit + 1), "image/png", limit)


if __name__ == "__main__":
    unittest.main()
