import json
import os
import tempfile
import unittest
from unittest.mock import patch

from backend.db import InMemoryDbClient
from scripts import seed_pupi

PUPO = {
    "name": "Il Vecchio Anno",
    "description": "Un pupo satirico.",
    "lat": 40.0565,
    "lng": 17.978,
    "image": "https://example.test/a.jpg",
    "artist": "Mario Rossi",
    "theme": "Tradizionale",
}


class SeedScriptTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.db = InMemoryDbClient()

    def run_seed(self, payload) -> int:
        path = os.path.join(self.tmp_dir.name, "seed.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        with patch.object(seed_pupi, "get_db_client", return_value=self.db), patch(
            "sys.argv", ["seed_pupi.py", path]
        ), patch.object(self.db, "close") as mock_close:
            code = seed_pupi.main()
        mock_close.assert_called_once_with()
        return code

    def test_seed_imports_and_closes_client(self):
        self.assertEqual(self.run_seed([PUPO, {**PUPO, "name": "Altro"}]), 0)
        self.assertEqual(self.db.count_pupi(), 2)

    def test_failed_seed_still_closes_client(self):
        self.assertEqual(self.run_seed([{**PUPO, "lat": "north"}]), 1)
        self.assertEqual(self.db.count_pupi(), 0)


if __name__ == "__main__":
    unittest.main()
