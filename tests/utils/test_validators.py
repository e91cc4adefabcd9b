"""
Tests for message payload validation helpers.
"""
import pytest

from dm_core.core.exceptions import UnsupportedMedia
from dm_core.models.message import MediaType
from dm_core.utils.validators import infer_media_type, normalize_content, resolve_media_type


class TestInferMediaType:

    @pytest.mark.parametrize("url,expected", [
        ("https://cdn.example.com/p/photo.jpg", MediaType.IMAGE),
        ("https://cdn.example.com/p/photo.JPEG?size=large", MediaType.IMAGE),
        ("https://cdn.example.com/p/photo.webp", MediaType.IMAGE),
        ("https://cdn.example.com/p/funny.gif", MediaType.GIF),
        ("https://cdn.example.com/p/clip.mov", MediaType.VIDEO),
    ])
    def test_known_extensions(self, url, expected):
        assert infer_media_type([url]) == expected

    def test_no_media(self):
        assert infer_media_type([]) == MediaType.NONE

    @pytest.mark.parametrize("url", ["https://cdn.example.com/doc.pdf", "https://cdn.example.com/noext"])
    def test_unknown_extension(self, url):
        with pytest.raises(UnsupportedMedia):
            infer_media_type([url])


class TestResolveMediaType:

    def test_explicit_type_wins(self):
        assert resolve_media_type(["https://cdn.example.com/upload"], "image") == MediaType.IMAGE

    def test_unknown_type(self):
        with pytest.raises(UnsupportedMedia):
            resolve_media_type(["https://cdn.example.com/a.png"], "audio")

    def test_none_with_urls(self):
        with pytest.raises(UnsupportedMedia):
            resolve_media_type(["https://cdn.example.com/a.png"], MediaType.NONE)

    def test_type_without_urls(self):
        with pytest.raises(UnsupportedMedia):
            resolve_media_type([], MediaType.VIDEO)


def test_normalize_content():
    assert normalize_content("  hi \n") == "hi"
    assert normalize_content(None) == ""
