"""Tests for the persistent owner → attachment file index."""

import json

from notionvault.attachments.index import INDEX_FILE_NAME, AttachmentIndex


class TestAttachmentIndex:
    def test_missing_file_loads_empty(self, tmp_path):
        index = AttachmentIndex.load(tmp_path)
        assert len(index) == 0
        assert index.path == tmp_path / INDEX_FILE_NAME

    def test_set_get_save_and_reload(self, tmp_path):
        index = AttachmentIndex.load(tmp_path)
        index.set("block-1", "photo.png")
        index.save()

        reloaded = AttachmentIndex.load(tmp_path)
        assert reloaded.get("block-1") == "photo.png"
        assert "block-1" in reloaded
        assert reloaded.source("block-1") is None
        assert json.loads((tmp_path / INDEX_FILE_NAME).read_text()) == {
            "block-1": {"file": "photo.png", "source": None}
        }

    def test_source_round_trips(self, tmp_path):
        index = AttachmentIndex(tmp_path)
        index.set("b", "x.png", source="s3.example.com/ws/u1/x.png")
        index.save()
        reloaded = AttachmentIndex.load(tmp_path)
        assert reloaded.get("b") == "x.png"
        assert reloaded.source("b") == "s3.example.com/ws/u1/x.png"

    def test_plain_string_entries_load_without_source(self, tmp_path):
        (tmp_path / INDEX_FILE_NAME).write_text('{"b": "x.png", "bad": 3}')
        index = AttachmentIndex.load(tmp_path)
        assert index.get("b") == "x.png"
        assert index.source("b") is None
        assert "bad" not in index

    def test_changing_source_is_a_change(self, tmp_path):
        index = AttachmentIndex(tmp_path)
        index.set("b", "x.png", source="a")
        index.save()
        (tmp_path / INDEX_FILE_NAME).unlink()
        index.set("b", "x.png", source="b")
        index.save()
        assert (tmp_path / INDEX_FILE_NAME).exists()

    def test_save_without_changes_writes_nothing(self, tmp_path):
        AttachmentIndex.load(tmp_path).save()
        assert not (tmp_path / INDEX_FILE_NAME).exists()

    def test_setting_same_value_is_not_a_change(self, tmp_path):
        (tmp_path / INDEX_FILE_NAME).write_text('{"b": "x.png"}')
        index = AttachmentIndex.load(tmp_path)
        index.set("b", "x.png")
        (tmp_path / INDEX_FILE_NAME).unlink()
        index.save()
        assert not (tmp_path / INDEX_FILE_NAME).exists()

    def test_corrupt_file_loads_empty(self, tmp_path):
        (tmp_path / INDEX_FILE_NAME).write_text("{not json")
        assert len(AttachmentIndex.load(tmp_path)) == 0

    def test_non_mapping_json_loads_empty(self, tmp_path):
        (tmp_path / INDEX_FILE_NAME).write_text("[1, 2]")
        assert len(AttachmentIndex.load(tmp_path)) == 0

    def test_rename_repoints_every_owner(self, tmp_path):
        index = AttachmentIndex(tmp_path)
        index.set("a", "dup.png")
        index.set("b", "dup.png")
        index.set("c", "other.png")
        assert index.rename("dup.png", "keeper.png") == 2
        assert index.get("a") == index.get("b") == "keeper.png"
        assert index.get("c") == "other.png"

    def test_rename_unknown_name(self, tmp_path):
        index = AttachmentIndex(tmp_path)
        index.set("a", "x.png")
        index.save()
        assert index.rename("missing.png", "y.png") == 0
        (tmp_path / INDEX_FILE_NAME).unlink()
        index.save()
        assert not (tmp_path / INDEX_FILE_NAME).exists()

    def test_save_creates_directory(self, tmp_path):
        index = AttachmentIndex(tmp_path / "new" / "attachments")
        index.set("a", "x.png")
        index.save()
        assert index.path.exists()
