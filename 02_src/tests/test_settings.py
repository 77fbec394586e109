"""Tests for local chat settings."""

import json
import logging

import pytest

from teamchat.errors import ValidationError
from teamchat.models import BACKGROUND_IMAGES
from teamchat.settings import ChatSettingsService, LocalSettingsStore, settings_key


class TestLocalSettingsStore:
    """Tests for LocalSettingsStore."""

    def test_values_survive_reload(self, tmp_path):
        path = tmp_path / "settings.json"
        LocalSettingsStore(path).set("chat_notification_sound", "ding")

        assert LocalSettingsStore(path).get("chat_notification_sound") == "ding"

    def test_corrupt_file_starts_fresh(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            store = LocalSettingsStore(path)

        assert store.get("anything") is None
        assert "Could not read settings file" in caplog.text

    def test_remove_and_clear(self, tmp_path):
        path = tmp_path / "settings.json"
        store = LocalSettingsStore(path)
        store.set("a", 1)
        store.set("b", 2)

        store.remove("a")
        assert json.loads(path.read_text(encoding="utf-8")) == {"b": 2}

        store.clear()
        assert store.get("b") is None

    def test_in_memory(self, tmp_path):
        store = LocalSettingsStore(None)
        store.set("a", 1)

        assert store.get("a") == 1
        assert list(tmp_path.iterdir()) == []


class TestChatSettingsService:
    """Tests for ChatSettingsService."""

    def test_defaults(self, local_store):
        settings = ChatSettingsService(local_store, "alice-1").settings

        assert settings.nickname is None
        assert settings.chat_theme == "default"
        assert settings.status == "Available"
        assert settings.background_image is None

    def test_nickname_is_trimmed_and_persisted(self, local_store):
        service = ChatSettingsService(local_store, "alice-1")

        service.save_nickname("  Al  ")

        stored = local_store.get(settings_key("alice-1"))
        assert stored["nickname"] == "Al"
        assert "updated_at" in stored
        assert ChatSettingsService(local_store, "alice-1").settings.nickname == "Al"

        service.save_nickname("   ")
        assert service.settings.nickname is None

    def test_settings_are_per_user(self, local_store):
        ChatSettingsService(local_store, "alice-1").save_nickname("Al")

        assert ChatSettingsService(local_store, "bob-1").settings.nickname is None

    def test_unknown_theme(self, local_store):
        with pytest.raises(ValidationError):
            ChatSettingsService(local_store, "alice-1").save_theme("neon")

    def test_background_preset_and_reset(self, local_store):
        service = ChatSettingsService(local_store, "alice-1")

        service.save_background("forest")
        assert service.settings.background_image == BACKGROUND_IMAGES["forest"]
        assert service.settings.chat_theme == "custom"

        service.save_background(None)
        assert service.settings.background_image is None
        assert service.settings.chat_theme == "default"

    def test_background_url(self, local_store):
        service = ChatSettingsService(local_store, "alice-1")

        service.save_background("https://example.com/bg.png")

        assert service.settings.background_image == "https://example.com/bg.png"

    def test_background_rejects_garbage(self, local_store):
        with pytest.raises(ValidationError):
            ChatSettingsService(local_store, "alice-1").save_background("not a url")
