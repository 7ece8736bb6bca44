"""In-memory question shapes produced by the normalizer."""

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

DEFAULT_DIFFICULTY = 3
OPTION_COUNT = 4


class _Unset:
    """Marker for patch fields the caller did not send."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def media_text(value: Any = None, *, text: Any = None, image: Any = None) -> dict[str, str]:
    """Build a trimmed {"text", "image"} pair.

    Accepts a mapping with text/image keys, a bare string (taken as text),
    or explicit keyword values which win over the mapping.
    """
    base_text: Any = ""
    base_image: Any = ""
    if isinstance(value, Mapping):
        base_text = value.get("text")
        base_image = value.get("image")
    elif isinstance(value, str):
        base_text = value

    if text is not None:
        base_text = text
    if image is not None:
        base_image = image

    return {"text": _trim(base_text), "image": _trim(base_image)}


def _trim(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class PendingImage:
    """An attached image held back until the write has passed every check."""

    field: str
    folder: str
    data: bytes

    @property
    def placeholder(self) -> str:
        return f"attachment://{self.field}"


@dataclass
class QuestionDraft:
    """A fully decoded question. References and attachments are still pending."""

    title: dict[str, str]
    options: list[dict[str, str]]
    correct_answer: int | None
    explanation: dict[str, str] = field(default_factory=media_text)
    categories: list[Any] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    difficulty: int | None = DEFAULT_DIFFICULTY
    created_by: Any = None
    is_approved: bool = False
    approved_by: Any = None
    pending_images: list[PendingImage] = field(default_factory=list)


@dataclass
class QuestionPatch:
    """Partial update. Fields left as UNSET are not touched."""

    title: Any = UNSET  # partial {"text"?, "image"?}
    options: Any = UNSET  # full replacement list
    option_updates: dict[int, dict[str, str]] = field(default_factory=dict)  # index -> partial
    explanation: Any = UNSET  # partial {"text"?, "image"?}
    correct_answer: Any = UNSET
    categories: Any = UNSET
    tags: Any = UNSET
    difficulty: Any = UNSET
    created_by: Any = UNSET
    pending_images: list[PendingImage] = field(default_factory=list)

    def fields_set(self) -> set[str]:
        present = {f.name for f in fields(self) if getattr(self, f.name) is not UNSET}
        if not self.option_updates:
            present.discard("option_updates")
        present.discard("pending_images")
        return present
