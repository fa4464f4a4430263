import json

from storefront.storage import PRODUCTS_KEY, LocalStorage


class TestLocalStorage:
    def test_values_persist_across_instances(self, storage, other_tab):
        storage.set_item("greeting", "vanakkam")

        assert other_tab.get_item("greeting") == "vanakkam"

    def test_json_helpers(self, storage):
        storage.set_json(PRODUCTS_KEY, [{"id": "batham"}])

        assert storage.get_json(PRODUCTS_KEY) == [{"id": "batham"}]
        assert storage.get_json("missing", default=[]) == []

    def test_change_notifies_other_tabs_only(self, storage, other_tab):
        own_events, other_events = [], []
        storage.add_listener(own_events.append)
        other_tab.add_listener(other_events.append)

        storage.set_item(PRODUCTS_KEY, "[]")

        assert own_events == []
        assert len(other_events) == 1
        assert other_events[0].key == PRODUCTS_KEY
        assert other_events[0].old_value is None
        assert other_events[0].new_value == "[]"

    def test_unchanged_value_does_not_notify(self, storage, other_tab):
        events = []
        other_tab.add_listener(events.append)

        storage.set_item("k", "v")
        storage.set_item("k", "v")

        assert len(events) == 1

    def test_remove_item_notifies(self, storage, other_tab):
        storage.set_item("k", "v")
        events = []
        other_tab.add_listener(events.append)

        storage.remove_item("k")

        assert storage.get_item("k") is None
        assert events[0].new_value is None
        assert events[0].old_value == "v"

    def test_failing_listener_does_not_break_writer(self, storage, other_tab):
        def boom(event):
            raise RuntimeError("listener crashed")

        other_tab.add_listener(boom)

        storage.set_item("k", "v")

        assert storage.get_item("k") == "v"

    def test_separate_files_are_separate_browsers(self, storage, tmp_path):
        elsewhere = LocalStorage(str(tmp_path / "other_profile.json"))
        events = []
        elsewhere.add_listener(events.append)

        storage.set_item("k", "v")

        assert events == []
        assert elsewhere.get_item("k") is None
        elsewhere.close()

    def test_corrupt_file_reads_as_empty(self, storage, storage_path):
        with open(storage_path, "w") as f:
            f.write("{not json")

        assert storage.get_item("k") is None
        storage.set_item("k", "v")
        with open(storage_path) as f:
            assert json.load(f) == {"k": "v"}
