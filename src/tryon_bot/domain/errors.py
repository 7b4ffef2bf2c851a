"""Error taxonomy for image ingestion, generation and delivery."""

_RESEND_HINT = "Please resend it as a PNG or JPEG image."


class TryOnError(Exception):
    """Base error carrying a user-facing message."""

    user_message = "Sorry, something went wrong. Please try again."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)


class ImageFetchError(TryOnError):
    """Raised when an inbound image cannot be accepted."""


class FetchForbidden(ImageFetchError):
    """The media URL refused access."""

    user_message = (
        "I couldn't access that image (access was denied). "
        "Please send it again."
    )


class FetchFailed(ImageFetchError):
    """The media URL could not be downloaded."""

    user_message = "I couldn't download that image. Please send it again."


class TooLarge(ImageFetchError):
    """The image exceeds the configured size limit."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(f"image is {size_bytes} bytes, limit is {limit_bytes}")

    @property
    def user_message(self) -> str:  # type: ignore[override]
        size_mb = self.size_bytes / (1024 * 1024)
        limit_mb = self.limit_bytes / (1024 * 1024)
        return (
            f"That image is too large ({size_mb:.1f} MB). "
            f"Please send one under {limit_mb:.0f} MB."
        )


class UnsupportedWebp(ImageFetchError):
    """WEBP images are not accepted."""

    user_message = f"WEBP images aren't supported. {_RESEND_HINT}"


class UnsupportedHeic(ImageFetchError):
    """HEIC/HEIF images are not accepted."""

    user_message = (
        "HEIC photos aren't supported. Change your camera format to "
        f"'Most Compatible' or take a screenshot. {_RESEND_HINT}"
    )


class UnsupportedType(ImageFetchError):
    """Any other non-PNG/JPEG content type."""

    def __init__(self, content_type: str | None) -> None:
        self.content_type = content_type
        super().__init__(f"unsupported content type: {content_type or 'unknown'}")

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"That file type isn't supported. {_RESEND_HINT}"


class GenerationEmpty(TryOnError):
    """The backend produced no usable image."""

    user_message = (
        "Sorry, I couldn't create your try-on image this time. "
        "Please send your selfie and clothing photo again."
    )

    def __init__(self, termination_reason: str | None = None) -> None:
        self.termination_reason = termination_reason
        super().__init__(
            f"no image produced (reason: {termination_reason or 'unknown'})"
        )


class DeliveryExhausted(TryOnError):
    """Every delivery tier failed."""

    def __init__(self, user_id: str, attempts: int) -> None:
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(f"all {attempts} delivery tiers failed for {user_id}")
