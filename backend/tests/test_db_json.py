import json
import os
import tempfile
import threading
import unittest

from backend.db import JsonFileDbClient, create_db_client

PUPO = {
    "name": "Il Vecchio Anno",
    "description": "Un pupo satirico.",
    "lat": 40.0565,
    "lng": 17.978,
    "image": "https://example.test/a.jpg",
    "artist": "Mario Rossi",
    "theme": "Fantasia",
}


class JsonFileDbClientTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp_dir.name, "pupi.json")

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_missing_file_starts_empty(self):
        db = JsonFileDbClient(self.path)
        self.assertEqual(db.list_pupi(), [])
        self.assertFalse(os.path.exists(self.path))

    def test_mutations_are_persisted(self):
        db = create_db_client(f"json://{self.path}")
        self.assertEqual(db.backend_name, "json")
        first = db.create_pupo(PUPO)
        second = db.create_pupo({**PUPO, "name": "Altro"})
        db.update_pupo(first.id, {"address": "Corso Roma"})
        db.add_vote("user-1", first.id)
        db.add_vote("user-2", second.id)
        db.delete_pupo(second.id)

        reopened = JsonFileDbClient(self.path)
        self.assertEqual([record.name for record in reopened.list_pupi()], [PUPO["name"]])
        self.assertEqual(reopened.get_pupo(first.id).address, "Corso Roma")
        self.assertEqual(reopened.get_vote_counts(), {first.id: 1})

        # Ids are never reused, even after deleting the newest pupo.
        third = reopened.create_pupo(PUPO)
        self.assertEqual(third.id, second.id + 1)

    def test_loads_legacy_list_layout(self):
        legacy = [
            {**PUPO, "id": 7, "lat": 40, "lng": 18},
            {
                "id": "9",
                "name": "Legacy",
                "description": "d",
                "lat": 40.05,
                "lng": 17.98,
                "imageUrl": "https://example.test/legacy.jpg",
                "artist": "a",
                "theme": "t",
            },
        ]
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(legacy, f)

        db = JsonFileDbClient(self.path)
        self.assertEqual(db.count_pupi(), 2)
        self.assertEqual(db.get_pupo(7).lat, 40.0)
        self.assertEqual(db.get_pupo(9).image, "https://example.test/legacy.jpg")
        self.assertEqual(db.create_pupo(PUPO).id, 10)

    def test_reset_clears_file(self):
        db = JsonFileDbClient(self.path)
        created = db.create_pupo(PUPO)
        db.add_vote("user-1", created.id)
        db.reset()

        reopened = JsonFileDbClient(self.path)
        self.assertEqual(reopened.count_pupi(), 0)
        self.assertEqual(reopened.get_vote_counts(), {})
        self.assertEqual(reopened.create_pupo(PUPO).id, 1)

    def test_reads_are_safe_during_concurrent_writes(self):
        db = JsonFileDbClient(self.path)
        done = threading.Event()
        errors = []

        def write():
            try:
                for i in range(40):
                    record = db.create_pupo({**PUPO, "name": f"Pupo {i}"})
                    db.add_vote(f"user-{i}", record.id)
            except Exception as e:
                errors.append(e)
            finally:
                done.set()

        def read():
            try:
                while not done.is_set():
                    db.list_pupi()
                    db.get_vote_counts()
                    db.get_user_votes("user-1")
                    db.has_vote("user-1", 2)
            except Exception as e:
                errors.append(e)

        readers = [threading.Thread(target=read) for _ in range(4)]
        writer = threading.Thread(target=write)
        for thread in readers + [writer]:
            thread.start()
        for thread in readers + [writer]:
            thread.join(timeout=30)

        self.assertEqual(errors, [])
        self.assertEqual(db.count_pupi(), 40)
        self.assertEqual(sum(db.get_vote_counts().values()), 40)


if __name__ == "__main__":
    unittest.main()
