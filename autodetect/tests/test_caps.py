"""Tests for capability descriptors."""

import pytest

from autodetect.caps import Caps, Structure


class TestParsing:
    def test_any_and_empty(self):
        assert Caps.from_string("ANY").is_any
        assert Caps.from_string("EMPTY").is_empty
        assert Caps.from_string("  ").is_empty

    def test_structures_and_fields(self):
        caps = Caps.from_string("video/x-raw-yuv, width=640, format=(string)I420; video/x-raw-rgb")
        assert [s.media_type for s in caps.structures] == ["video/x-raw-yuv", "video/x-raw-rgb"]
        assert dict(caps.structures[0].fields) == {"format": "I420", "width": "640"}
        assert str(caps) == "video/x-raw-yuv, format=I420, width=640; video/x-raw-rgb"

    @pytest.mark.parametrize("text", ["width=640", "video/x-raw-yuv, width", ", ,"])
    def test_malformed(self, text):
        with pytest.raises(ValueError):
            Caps.from_string(text)


class TestIntersection:
    def test_same_media_type_intersects(self):
        video = Caps.from_string("video/x-raw-yuv; video/x-raw-rgb")
        assert video.can_intersect(Caps.from_string("video/x-raw-rgb, bpp=24"))

    def test_other_media_type_does_not(self):
        video = Caps.from_string("video/x-raw-yuv; video/x-raw-rgb")
        assert not video.can_intersect(Caps.from_string("audio/x-raw-int"))

    def test_conflicting_fields(self):
        first = Caps.from_string("video/x-raw-yuv, format=I420")
        assert not first.can_intersect(Caps.from_string("video/x-raw-yuv, format=YUY2"))
        assert first.can_intersect(Caps.from_string("video/x-raw-yuv, width=320"))

    def test_any_and_empty(self):
        video = Caps.from_string("video/x-raw-yuv")
        assert Caps.new_any().can_intersect(video)
        assert video.can_intersect(Caps.new_any())
        assert not Caps.new_empty().can_intersect(Caps.new_any())
        assert not video.can_intersect(Caps.new_empty())

    def test_intersect_merges_fields(self):
        result = Caps.from_string("video/x-raw-yuv, width=320").intersect(
            Caps.from_string("video/x-raw-yuv, height=240; audio/x-raw-int")
        )
        assert result.structures == (
            Structure("video/x-raw-yuv", (("height", "240"), ("width", "320"))),
        )

    def test_intersect_with_any_returns_other(self):
        video = Caps.from_string("video/x-raw-rgb")
        assert Caps.new_any().intersect(video) == video
        assert video.intersect(Caps.new_empty()).is_empty


class TestValueSemantics:
    def test_copy_is_equal(self):
        caps = Caps.from_string("video/x-raw-yuv; video/x-raw-rgb")
        clone = caps.copy()
        assert clone == caps
        assert clone is not caps
        assert hash(clone) == hash(caps)

    def test_any_differs_from_empty(self):
        assert Caps.new_any() != Caps.new_empty()
