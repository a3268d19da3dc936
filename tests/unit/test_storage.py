import io

import pytest
from PIL import Image

from horeca.config import get_settings
from horeca.services.storage import (
    InvalidImageError, delete_blob, make_preview, make_storage_key, read_blob, save_blob, verify_image,
)


@pytest.fixture(autouse=True)
def tmp_storage(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings().storage, "base_dir", str(tmp_path))
    return tmp_path


def test_storage_key_layout():
    key = make_storage_key("01TENANT", "Menu.PDF")
    tenant, name = key.split("/")
    assert tenant == "01TENANT"
    assert name.endswith(".pdf")
    assert make_storage_key("01TENANT", "Menu.pdf") != key


def test_storage_key_without_extension():
    key = make_storage_key("t1", "README")
    assert "." not in key.split("/")[1]


async def test_save_read_delete(tmp_storage):
    key = make_storage_key("t1", "notes.txt")
    await save_blob(key, b"hello")
    assert (tmp_storage / key).read_bytes() == b"hello"
    assert await read_blob(key) == b"hello"

    await delete_blob(key)
    with pytest.raises(FileNotFoundError):
        await read_blob(key)
    await delete_blob(key)


@pytest.mark.parametrize("key", ["../outside.txt", "t1/../../outside.txt", "/etc/passwd"])
async def test_keys_cannot_escape_base_dir(key):
    with pytest.raises(ValueError):
        await save_blob(key, b"x")


async def test_preview_is_downscaled_jpeg():
    buf = io.BytesIO()
    Image.new("RGBA", (1200, 600), (255, 0, 0, 128)).save(buf, "PNG")

    preview = await make_preview(buf.getvalue(), (300, 300))
    img = Image.open(io.BytesIO(preview))
    assert img.format == "JPEG"
    assert img.size == (300, 150)


async def test_undecodable_image_is_rejected():
    with pytest.raises(InvalidImageError):
        await verify_image(b"not really a png")
    with pytest.raises(InvalidImageError):
        await make_preview(b"not really a png")

    buf = io.BytesIO()
    Image.new("RGB", (10, 10)).save(buf, "PNG")
    await verify_image(buf.getvalue())
