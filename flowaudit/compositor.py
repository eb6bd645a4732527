"""Burn annotations into screenshots before they are sent for analysis.

The model only sees pixels, so a screen's annotations are flattened onto a
copy of its image. This is best effort: if the image cannot be decoded in
time, or drawing fails, the original image goes out unchanged. A broken
overlay must never block the analysis request.
"""

from __future__ import annotations

import base64
import io
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass

import httpx
from PIL import Image, ImageDraw
from rich.console import Console

from .annotations import Annotation
from .config import DEFAULT_COMPOSE_TIMEOUT
from .flow import Screen
from .image_utils import is_inline, split_data_uri
from .render import COMPOSITE_STYLE, draw_annotations

console = Console()

# Composited output is always PNG, whatever the input was
COMPOSITE_MEDIA_TYPE = "image/png"

MAX_WORKERS = 4
FETCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class CompositeResult:
    """Base64 payload and media type of the image to send."""

    data: str
    media_type: str
    composited: bool = False

    @property
    def data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


def _fetch_remote(url: str, client: httpx.Client | None = None) -> bytes:
    """Fetch a remote image anonymously (CORS mode, no credentials)."""
    headers = {"Accept": "image/*", "Sec-Fetch-Mode": "cors"}
    if client is None:
        with httpx.Client(timeout=FETCH_TIMEOUT, follow_redirects=True) as own_client:
            response = own_client.get(url, headers=headers)
            response.raise_for_status()
            return response.content
    response = client.get(url, headers=headers)
    response.raise_for_status()
    return response.content


def load_source_image(image_url: str, client: httpx.Client | None = None) -> Image.Image:
    """
    Decode a screen's image fully into memory.

    Inline data URIs are decoded locally and never touch the network. Any
    other reference is treated as a remote URL.

    Raises:
        httpx.HTTPError: If a remote fetch fails
        PIL.UnidentifiedImageError / OSError / ValueError: If decoding fails
    """
    if is_inline(image_url):
        _, payload = split_data_uri(image_url)
        raw = base64.b64decode(payload)
    else:
        raw = _fetch_remote(image_url, client)

    image = Image.open(io.BytesIO(raw))
    image.load()
    return image


def burn_in(image: Image.Image, annotations: tuple[Annotation, ...]) -> str:
    """Draw annotations over a same-size copy of ``image``; return base64 PNG."""
    canvas = image.convert("RGBA")
    draw_annotations(ImageDraw.Draw(canvas), annotations, COMPOSITE_STYLE)

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def composite(
    screen: Screen,
    timeout: float = DEFAULT_COMPOSE_TIMEOUT,
    client: httpx.Client | None = None,
) -> CompositeResult:
    """
    Produce the image to send for ``screen``.

    Args:
        screen: Screen with image and annotations
        timeout: Seconds to wait for the image to decode
        client: Optional shared HTTP client for remote images

    Returns:
        Original payload and media type when there is nothing to draw or
        anything goes wrong, otherwise a freshly encoded PNG
    """
    media_type, data = split_data_uri(screen.image_url)
    original = CompositeResult(data=data, media_type=media_type)

    # Nothing to burn in: avoid a lossy, costly re-encode
    if not screen.annotations:
        return original

    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(load_source_image, screen.image_url, client)
    try:
        image = future.result(timeout=timeout)
    except FutureTimeoutError:
        console.print(f"[yellow]Image composition timed out for {screen.name}, using original[/]")
        return original
    except Exception as e:
        console.print(f"[yellow]Image load error for {screen.name}: {e}[/]")
        return original
    finally:
        # A late decode result is simply discarded
        executor.shutdown(wait=False, cancel_futures=True)

    try:
        encoded = burn_in(image, screen.annotations)
    except Exception as e:
        console.print(f"[yellow]Composition error for {screen.name}: {e}[/]")
        return original

    return CompositeResult(data=encoded, media_type=COMPOSITE_MEDIA_TYPE, composited=True)


def composite_all(
    screens: tuple[Screen, ...] | list[Screen],
    timeout: float = DEFAULT_COMPOSE_TIMEOUT,
    max_workers: int = MAX_WORKERS,
) -> list[CompositeResult]:
    """
    Composite every screen; results come back in screen order.

    Screens are processed concurrently but the batch is only returned once
    every screen has a result.
    """
    if not screens:
        return []

    results_by_idx: dict[int, CompositeResult] = {}
    needs_network = any(s.annotations and not is_inline(s.image_url) for s in screens)
    client = httpx.Client(timeout=FETCH_TIMEOUT, follow_redirects=True) if needs_network else None

    try:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures: dict[Future[CompositeResult], int] = {
                executor.submit(composite, screen, timeout, client): idx
                for idx, screen in enumerate(screens)
            }
            for future in as_completed(futures):
                results_by_idx[futures[future]] = future.result()
    finally:
        if client is not None:
            client.close()

    composited = sum(1 for r in results_by_idx.values() if r.composited)
    if composited:
        console.print(f"[dim]Burned annotations into {composited}/{len(screens)} screens[/]")

    return [results_by_idx[idx] for idx in range(len(screens))]
