import datetime

from django.test import TestCase, override_settings

from core.memoirs import list_memoirs
from core.tests.utils_test_data import FIXED_NOW, create_memoir


class ListMemoirsTests(TestCase):
    def setUp(self) -> None:
        self.second = create_memoir(name="Second", priority_seq=2, batch=2010)
        self.first = create_memoir(name="First", priority_seq=1, branch="ECE")
        self.unranked = create_memoir(name="Unranked")
        self.newer_second = create_memoir(
            name="Newer second",
            priority_seq=2,
            approved=FIXED_NOW + datetime.timedelta(days=1),
        )
        create_memoir(name="Inactive", priority_seq=0, active=False)
        create_memoir(name="Unapproved", priority_seq=0, approved=None)

    def test_published_in_priority_order(self) -> None:
        page = list_memoirs()

        self.assertEqual(
            [memoir.name for memoir in page.items],
            ["First", "Newer second", "Second", "Unranked"],
        )
        self.assertEqual(page.total, 4)
        self.assertEqual(page.page, 1)
        self.assertEqual(page.per_page, 24)

    def test_pagination(self) -> None:
        second_page = list_memoirs(page=2, per_page=3)
        past_end = list_memoirs(page=5, per_page=3)

        self.assertEqual([memoir.name for memoir in second_page.items], ["Unranked"])
        self.assertEqual(second_page.total, 4)
        self.assertEqual(past_end.items, [])

    @override_settings(MEMOIRS_PER_PAGE=1)
    def test_page_size_setting(self) -> None:
        self.assertEqual([memoir.name for memoir in list_memoirs().items], ["First"])

    def test_as_dict(self) -> None:
        row = list_memoirs().items[0].as_dict()

        self.assertEqual(row["id"], self.first.pk)
        self.assertEqual(row["branch"], "ECE")
        self.assertEqual(row["date_approved"], FIXED_NOW.isoformat())


class MemoirsViewTests(TestCase):
    def test_lists_without_login(self) -> None:
        create_memoir(name="First", priority_seq=1)
        create_memoir(name="Hidden", active=False)

        resp = self.client.get("/api/memoirs")

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([row["name"] for row in body["memoirs"]], ["First"])
        self.assertEqual((body["total"], body["page"], body["per_page"]), (1, 1, 24))

    def test_bad_page_falls_back_to_first(self) -> None:
        create_memoir(name="First", priority_seq=1)

        for page in ("abc", "0", "-3"):
            with self.subTest(page=page):
                self.assertEqual(self.client.get("/api/memoirs", {"page": page}).json()["page"], 1)

    def test_post_is_not_allowed(self) -> None:
        self.assertEqual(self.client.post("/api/memoirs").status_code, 405)
