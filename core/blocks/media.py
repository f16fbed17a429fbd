"""Media URL helpers for image and video blocks."""

import re
from urllib.parse import parse_qs, urlparse

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")

# Image hosts that serve images without a file extension in the URL
IMAGE_DOMAINS = (
    "imgur.com",
    "unsplash.com",
    "pixabay.com",
    "pexels.com",
    "githubusercontent.com",
    "cloudinary.com",
    "amazonaws.com",
    "googleusercontent.com",
    "cdn.jsdelivr.net",
    "cdnjs.cloudflare.com",
)

_YOUTUBE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


class InvalidMediaUrlError(ValueError):
    """Raised when a URL cannot be used for a media block."""
    pass


def _parse_http_url(url: str):
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidMediaUrlError(f"Invalid URL: {url}")
    return parsed


def validate_image_url(url: str) -> str:
    """
    Check that a URL points at an image.

    Accepts URLs with a known image extension, or hosted on a known image
    service even without one.

    Returns:
        The stripped URL

    Raises:
        InvalidMediaUrlError: If the URL is malformed or does not look like an image
    """
    parsed = _parse_http_url(url)
    path = parsed.path.lower()
    host = parsed.netloc.lower()

    has_extension = any(path.endswith(ext) for ext in IMAGE_EXTENSIONS)
    from_image_domain = any(
        host == domain or host.endswith("." + domain) for domain in IMAGE_DOMAINS
    )

    if not has_extension and not from_image_domain:
        raise InvalidMediaUrlError(
            "URL does not appear to be an image. Please use a direct image URL "
            "or a URL from a known image hosting service."
        )
    return url.strip()


def youtube_video_id(url: str) -> str | None:
    """Extract the video id from the common YouTube URL forms."""
    try:
        parsed = _parse_http_url(url)
    except InvalidMediaUrlError:
        return None

    host = parsed.netloc.lower().removeprefix("www.").removeprefix("m.")
    candidate = None
    if host == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif host in ("youtube.com", "youtube-nocookie.com"):
        if parsed.path == "/watch":
            candidate = parse_qs(parsed.query).get("v", [None])[0]
        elif parsed.path.startswith(("/embed/", "/shorts/", "/v/")):
            candidate = parsed.path.split("/")[2]

    if candidate and _YOUTUBE_ID.match(candidate):
        return candidate
    return None


def to_embed_url(url: str) -> str:
    """Normalise a video URL to an embeddable one; non-YouTube URLs pass through."""
    video_id = youtube_video_id(url)
    if video_id:
        return f"https://www.youtube.com/embed/{video_id}"
    return url
