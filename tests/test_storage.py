import os

import pytest

from catalog.errors import PayloadTooLarge, UnsupportedMediaType
from catalog.storage import MAX_FILE_SIZE, AssetStorage, PendingUpload, check_image


def test_save_names_and_location(tmp_path):
    storage = AssetStorage(str(tmp_path))
    url = storage.save("product", PendingUpload("Front.JPG", "image/jpeg", b"data"))
    assert url.startswith("/uploads/products/product-")
    assert url.endswith(".jpg")
    path = storage.path_for(url)
    assert os.path.dirname(path) == os.path.join(str(tmp_path), "products")
    with open(path, "rb") as fh:
        assert fh.read() == b"data"


def test_names_do_not_collide(tmp_path):
    storage = AssetStorage(str(tmp_path))
    urls = storage.save_all("product", [PendingUpload("a.png", "image/png", b"x")] * 20)
    assert len(set(urls)) == 20


def test_delete_is_idempotent(tmp_path):
    storage = AssetStorage(str(tmp_path))
    url = storage.save("category", PendingUpload("a.png", "image/png", b"x"))
    assert storage.delete(url) is True
    assert storage.delete(url) is False
    assert storage.delete(None) is False


def test_paths_outside_root_are_ignored(tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")
    storage = AssetStorage(str(tmp_path / "uploads"))
    assert storage.path_for("/uploads/../keep.txt") is None
    assert storage.delete("/images/placeholder.jpg") is False
    assert outside.exists()


@pytest.mark.parametrize("filename,content_type", [
    ("notes.txt", "text/plain"),
    ("photo.png", "text/plain"),
    ("script.exe", "image/png"),
    ("noext", "image/png"),
])
def test_non_images_rejected(filename, content_type):
    with pytest.raises(UnsupportedMediaType):
        check_image(filename, content_type, 10)


def test_size_limit():
    check_image("big.webp", "image/webp", MAX_FILE_SIZE)
    with pytest.raises(PayloadTooLarge):
        check_image("big.webp", "image/webp", MAX_FILE_SIZE + 1)


def test_read_uploads_stops_past_limit():
    import asyncio
    import io

    from starlette.datastructures import Headers
    from fastapi import UploadFile

    from catalog.storage import read_uploads

    class CountingFile(io.BytesIO):
        largest_read = 0

        def read(self, size=-1):
            CountingFile.largest_read = max(CountingFile.largest_read, size if size >= 0 else len(self.getvalue()))
            return super().read(size)

    upload = UploadFile(
        file=CountingFile(b"\x00" * (MAX_FILE_SIZE * 2)),
        filename="huge.png",
        headers=Headers({"content-type": "image/png"}),
    )
    with pytest.raises(PayloadTooLarge):
        asyncio.run(read_uploads([upload]))
    assert CountingFile.largest_read == MAX_FILE_SIZE + 1
