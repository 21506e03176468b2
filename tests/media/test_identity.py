"""
Tests for src/shared/media/identity.py
"""

import unittest

from src.shared.media.identity import descriptor_from_snapshot, find_uuid


UUID_A = "0f8fad5b-d9cb-469f-a165-70867728950e"
UUID_B = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


class TestFindUuid(unittest.TestCase):
    def test_finds_first_and_lowercases(self) -> None:
        value = f"/imagine/post/{UUID_A.upper()}/x/{UUID_B}"
        self.assertEqual(find_uuid(value), UUID_A)

    def test_none_when_absent(self) -> None:
        self.assertIsNone(find_uuid("/imagine/favorites"))
        self.assertIsNone(find_uuid(""))
        self.assertIsNone(find_uuid(None))


class TestDescriptorFromSnapshot(unittest.TestCase):
    def test_data_attribute_wins(self) -> None:
        descriptor = descriptor_from_snapshot(
            {"data_id": "post-1", "href": f"/imagine/post/{UUID_A}", "media_url": f"https://cdn/{UUID_B}.jpg"}
        )
        self.assertEqual(descriptor.id, "post-1")
        self.assertEqual(descriptor.url, f"https://cdn/{UUID_B}.jpg")

    def test_href_uuid_before_media_url(self) -> None:
        descriptor = descriptor_from_snapshot(
            {"href": f"/imagine/post/{UUID_A}", "media_url": f"https://cdn/{UUID_B}.jpg"}
        )
        self.assertEqual(descriptor.id, UUID_A)

    def test_media_url_uuid_fallback(self) -> None:
        descriptor = descriptor_from_snapshot({"media_url": f"https://cdn/users/{UUID_B}/content"})
        self.assertEqual(descriptor.id, UUID_B)

    def test_url_falls_back_to_href(self) -> None:
        descriptor = descriptor_from_snapshot({"href": f"https://grok.com/imagine/post/{UUID_A}"})
        self.assertEqual(descriptor.url, f"https://grok.com/imagine/post/{UUID_A}")

    def test_no_identity(self) -> None:
        for snapshot in (None, {}, {"href": "/imagine/favorites", "media_url": "https://cdn/x.jpg"}, {"data_id": "  "}):
            with self.subTest(snapshot=snapshot):
                self.assertIsNone(descriptor_from_snapshot(snapshot))


if __name__ == "__main__":
    unittest.main()
