import pytest

from app.services.storage_service import LocalStorage, generate_name


class TestGenerateName:
    def test_keeps_client_extension(self):
        name = generate_name("holiday.MOV")

        assert name.endswith(".MOV")
        timestamp, token_and_ext = name.split("-", 1)
        assert timestamp.isdigit()
        assert len(token_and_ext) == len("abcdef12.MOV")

    def test_no_extension(self):
        assert "." not in generate_name("README")
        assert "." not in generate_name(None)

    def test_explicit_extension_wins(self):
        assert generate_name("clip.mp4", ext=".jpg").endswith(".jpg")
        assert generate_name(ext="png").endswith(".png")

    def test_suspicious_extension_dropped(self):
        assert "." not in generate_name("clip.mp4 ;rm")

    def test_names_do_not_collide(self):
        names = {generate_name("same.mp4") for _ in range(2000)}

        assert len(names) == 2000


class TestLocalStorage:
    def test_creates_directory(self, tmp_path):
        storage = LocalStorage(tmp_path / "a" / "b")

        assert storage.base_dir.is_dir()

    def test_rejects_names_outside_directory(self, storage):
        with pytest.raises(ValueError):
            storage.path_for("../escape.mp4")
        with pytest.raises(ValueError):
            storage.path_for("")

    def test_save_bytes_and_remove(self, storage):
        name = storage.save_bytes(b"img", ".png")

        assert storage.path_for(name).read_bytes() == b"img"
        assert storage.remove(name) is True
        assert storage.remove(name) is False
        assert storage.list_names() == []

    def test_new_path_does_not_create_file(self, storage):
        name, path = storage.new_path(".jpg")

        assert path == storage.path_for(name)
        assert not path.exists()
