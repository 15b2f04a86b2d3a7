"""Tests for storage backends and DraftRepository."""

from datetime import datetime

from takumaeat_schemas import OrderType, PaymentMethod, PickupType

from apps.web.checkout.drafts import (
    DRAFT_STORAGE_KEY,
    CheckoutDraft,
    CheckoutStep,
    DraftRepository,
    TakeawayForm,
)
from apps.web.checkout.storage import FileStorage, InMemoryStorage, KeyValueStorage


class TestStorage:
    """Tests for InMemoryStorage and FileStorage."""

    def test_in_memory_round_trip(self):
        storage = InMemoryStorage()
        storage.set_item("a", "1")

        assert storage.get_item("a") == "1"
        storage.remove_item("a")
        assert storage.get_item("a") is None
        storage.remove_item("a")  # removing twice is fine

    def test_backends_satisfy_protocol(self, tmp_path):
        assert isinstance(InMemoryStorage(), KeyValueStorage)
        assert isinstance(FileStorage(tmp_path / "s.json"), KeyValueStorage)

    def test_file_storage_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "storage.json"
        FileStorage(path).set_item("cart", "[]")

        assert FileStorage(path).get_item("cart") == "[]"

    def test_file_storage_remove(self, tmp_path):
        storage = FileStorage(tmp_path / "storage.json")
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.remove_item("a")

        assert storage.get_item("a") is None
        assert storage.get_item("b") == "2"

    def test_file_storage_unreadable_file_reads_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("garbage", encoding="utf-8")
        storage = FileStorage(path)

        assert storage.get_item("a") is None
        storage.set_item("a", "1")
        assert storage.get_item("a") == "1"


class TestDraftRepository:
    """Tests for draft save/load/clear."""

    def test_load_empty(self):
        assert DraftRepository(InMemoryStorage()).load() is None

    def test_save_and_load(self):
        repo = DraftRepository(InMemoryStorage())
        draft = CheckoutDraft(
            step=CheckoutStep.DETAILS,
            order_type=OrderType.TAKEAWAY,
            takeaway=TakeawayForm(
                branch_id="jakarta",
                pickup_type=PickupType.SCHEDULED,
                pickup_at=datetime(2030, 1, 1, 12, 0),
                payment_method=PaymentMethod.COD,
            ),
        )
        repo.save(draft)

        assert repo.load() == draft

    def test_saved_under_fixed_key_with_camel_case(self):
        storage = InMemoryStorage()
        DraftRepository(storage).save(CheckoutDraft(order_type=OrderType.TAKEAWAY))

        raw = storage.get_item(DRAFT_STORAGE_KEY)
        assert '"orderType":"takeaway"' in raw
        assert '"step":"review"' in raw

    def test_clear(self):
        storage = InMemoryStorage()
        repo = DraftRepository(storage)
        repo.save(CheckoutDraft())
        repo.clear()

        assert repo.load() is None
        assert DRAFT_STORAGE_KEY not in storage

    def test_unreadable_draft_is_discarded(self):
        storage = InMemoryStorage({DRAFT_STORAGE_KEY: '{"step": "bogus"}'})
        repo = DraftRepository(storage)

        assert repo.load() is None
        assert DRAFT_STORAGE_KEY not in storage
