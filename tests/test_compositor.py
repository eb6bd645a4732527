"""Tests for burning annotations into screenshots."""

import base64
import io
import time
from unittest.mock import MagicMock, patch

import httpx
from PIL import Image

from flowaudit.annotations import RectAnnotation
from flowaudit.compositor import COMPOSITE_MEDIA_TYPE, composite, composite_all
from flowaudit.flow import Screen
from flowaudit.image_utils import split_data_uri


def _decode(data: str) -> Image.Image:
    return Image.open(io.BytesIO(base64.b64decode(data)))


def _screen(image_url: str, *annotations, order: int = 0) -> Screen:
    return Screen(image_url=image_url, name=f"screen-{order}", order=order, annotations=annotations)


RED_BOX = RectAnnotation(x=10, y=10, width=20, height=10, color="#ff0000", thickness=3)


class TestComposite:
    """Tests for single-screen compositing."""

    def test_no_annotations_returns_original(self, jpeg_data_uri: str) -> None:
        """Without annotations the payload and media type pass through untouched."""
        media_type, payload = split_data_uri(jpeg_data_uri)

        result = composite(_screen(jpeg_data_uri))

        assert result.data == payload
        assert result.media_type == media_type == "image/jpeg"
        assert not result.composited

    def test_annotations_are_burned_into_png(self, jpeg_data_uri: str) -> None:
        result = composite(_screen(jpeg_data_uri, RED_BOX))

        assert result.composited
        assert result.media_type == COMPOSITE_MEDIA_TYPE
        image = _decode(result.data)
        assert image.format == "PNG"
        assert image.size == (50, 40)
        assert image.convert("RGB").getpixel((10, 15)) == (255, 0, 0)

    def test_output_is_deterministic(self, png_data_uri: str) -> None:
        screen = _screen(png_data_uri, RED_BOX)

        assert composite(screen).data == composite(screen).data

    def test_timeout_falls_back_to_original(self, png_data_uri: str) -> None:
        """A decode that outlives the timeout is abandoned."""

        def slow_load(*_args, **_kwargs):
            time.sleep(0.5)
            raise AssertionError("late result must be discarded")

        _, payload = split_data_uri(png_data_uri)
        with patch("flowaudit.compositor.load_source_image", side_effect=slow_load):
            started = time.monotonic()
            result = composite(_screen(png_data_uri, RED_BOX), timeout=0.05)
            elapsed = time.monotonic() - started

        assert result.data == payload
        assert result.media_type == "image/png"
        assert not result.composited
        assert elapsed < 0.4

    def test_undecodable_image_falls_back(self) -> None:
        bad = "data:image/png;base64," + base64.b64encode(b"not an image").decode("ascii")

        result = composite(_screen(bad, RED_BOX))

        assert result.data == base64.b64encode(b"not an image").decode("ascii")
        assert result.media_type == "image/png"
        assert not result.composited

    def test_draw_error_falls_back(self, png_data_uri: str) -> None:
        _, payload = split_data_uri(png_data_uri)
        with patch("flowaudit.compositor.burn_in", side_effect=RuntimeError("boom")):
            result = composite(_screen(png_data_uri, RED_BOX))

        assert result.data == payload
        assert not result.composited

    def test_data_uri(self, png_data_uri: str) -> None:
        assert composite(_screen(png_data_uri)).data_uri == png_data_uri


class TestCompositeAll:
    def test_results_follow_screen_order(self, image_uri) -> None:
        """Results line up with screens even though work runs concurrently."""
        screens = [
            _screen(image_uri(size=(30, 30)), RED_BOX, order=0),
            _screen(image_uri(size=(40, 40)), order=1),
            _screen(image_uri(size=(60, 60)), RED_BOX, order=2),
        ]

        results = composite_all(screens)

        assert [r.composited for r in results] == [True, False, True]
        assert _decode(results[0].data).size == (30, 30)
        assert results[1].data == split_data_uri(screens[1].image_url)[1]
        assert _decode(results[2].data).size == (60, 60)

    def test_empty_batch(self) -> None:
        assert composite_all([]) == []


class TestRemoteSources:
    """Tests for fetching images that are not inline."""

    URL = "https://cdn.example.com/shots/login.png"

    def test_remote_image_is_fetched_anonymously(self, png_bytes: bytes) -> None:
        with patch("flowaudit.compositor.httpx.Client") as mock_client:
            mock_response = MagicMock()
            mock_response.content = png_bytes
            get = mock_client.return_value.__enter__.return_value.get
            get.return_value = mock_response

            result = composite(_screen(self.URL, RED_BOX))

        assert result.composited
        assert result.media_type == COMPOSITE_MEDIA_TYPE
        args, kwargs = get.call_args
        assert args[0] == self.URL
        headers = kwargs["headers"]
        assert headers["Sec-Fetch-Mode"] == "cors"
        assert "Cookie" not in headers
        assert "Authorization" not in headers

    def test_inline_image_never_builds_a_client(self, png_data_uri: str) -> None:
        with patch("flowaudit.compositor.httpx.Client") as mock_client:
            result = composite(_screen(png_data_uri, RED_BOX))
            batch = composite_all([_screen(png_data_uri, RED_BOX), _screen(png_data_uri)])

        mock_client.assert_not_called()
        assert result.composited
        assert [r.composited for r in batch] == [True, False]

    def test_batch_shares_one_client(self, png_bytes: bytes, png_data_uri: str) -> None:
        """Remote screens in a batch reuse a single client, closed afterwards."""
        with patch("flowaudit.compositor.httpx.Client") as mock_client:
            mock_response = MagicMock()
            mock_response.content = png_bytes
            client = mock_client.return_value
            client.get.return_value = mock_response

            results = composite_all(
                [
                    _screen(self.URL, RED_BOX, order=0),
                    _screen(png_data_uri, RED_BOX, order=1),
                    _screen(self.URL, RED_BOX, order=2),
                ]
            )

        assert mock_client.call_count == 1
        assert client.get.call_count == 2
        client.close.assert_called_once()
        assert [r.composited for r in results] == [True, True, True]

    def test_failed_fetch_keeps_original(self) -> None:
        with patch("flowaudit.compositor.httpx.Client") as mock_client:
            get = mock_client.return_value.__enter__.return_value.get
            get.side_effect = httpx.ConnectError("refused")

            result = composite(_screen(self.URL, RED_BOX))

        assert not result.composited
        assert result.data == self.URL
        assert result.media_type == "image/png"
