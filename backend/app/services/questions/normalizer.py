"""Decode raw question submissions into drafts.

Two input shapes are accepted. A body whose `title` is an object is
structured: title/options/explanation arrive as {text, image} objects.
Anything else is flat: titleText, optionText0..3 and explanationText come
as scalars (usually multipart form fields) with images attached as files.
Attached images are not uploaded here. Each one fills its slot with a
placeholder so validation sees the image as present, and is queued on the
draft for `upload_pending_images` once the write has been accepted.
"""

import json
import math
import re
from typing import Any, Iterable, Mapping

from app.core.app_exceptions import (
    InvalidCategoriesFormat,
    InvalidTagsFormat,
    MalformedPayload,
    MediaUploadError,
)
from app.services.media import (
    EXPLANATION_FOLDER,
    EXPLANATION_IMAGE_FIELD,
    OPTION_IMAGE_FIELDS,
    OPTIONS_FOLDER,
    TITLE_FOLDER,
    TITLE_IMAGE_FIELD,
    MediaStore,
    UploadedImage,
)
from app.services.questions.draft import (
    DEFAULT_DIFFICULTY,
    OPTION_COUNT,
    PendingImage,
    QuestionDraft,
    QuestionPatch,
    media_text,
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_JSON_PREFIXES = ("[", "{", '"')
_TRUE_STRINGS = {"true", "1", "yes", "on"}


def parse_int(value: Any) -> int | None:
    """Lenient integer parse: leading digits of a string, truncated floats.

    Returns None when nothing numeric can be read ("abc", "", None, true),
    including digit runs past the interpreter's int conversion limit.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def coerce_list_field(value: Any, error_cls: type[MalformedPayload]) -> list[Any]:
    """Normalize a list-valued field that may arrive in several shapes.

    None or "" -> []; lists pass through; JSON-looking strings are decoded
    (a non-list result is wrapped); any other string or scalar is wrapped.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if not isinstance(value, str):
        return [value]

    stripped = value.strip()
    if not stripped:
        return []
    if stripped.startswith(_JSON_PREFIXES):
        try:
            decoded = json.loads(stripped)
        except (json.JSONDecodeError, ValueError) as e:
            raise error_cls(value) from e
        if decoded is None:
            return []
        return decoded if isinstance(decoded, list) else [decoded]
    return [stripped]


def _coerce_tags(value: Any) -> list[str]:
    tags = []
    for item in coerce_list_field(value, InvalidTagsFormat):
        if item is None:
            continue
        tag = str(item).strip()
        if tag:
            tags.append(tag)
    return tags


def _coerce_categories(value: Any) -> list[Any]:
    return [item for item in coerce_list_field(value, InvalidCategoriesFormat) if item is not None]


def _difficulty(value: Any) -> int:
    parsed = parse_int(value)
    return DEFAULT_DIFFICULTY if parsed is None else parsed


def _string_value(value: Any) -> str | None:
    """Scalar form value, ignoring non-string payloads such as file parts."""
    if value is None or isinstance(value, (Mapping, list, UploadedImage)):
        return None
    return str(value)


def is_structured(raw: Mapping[str, Any]) -> bool:
    return isinstance(raw.get("title"), Mapping)


def _attach(
    files: Mapping[str, UploadedImage], field: str, folder: str, pending: list[PendingImage]
) -> str | None:
    """Queue an attached file and return the placeholder for its slot."""
    attachment = files.get(field)
    if attachment is None:
        return None
    image = PendingImage(field=field, folder=folder, data=attachment.data)
    pending.append(image)
    return image.placeholder


def _image_slot(
    field: str,
    title: dict[str, str] | None,
    options: list[dict[str, str]] | None,
    explanation: dict[str, str] | None,
) -> dict[str, str] | None:
    if field == TITLE_IMAGE_FIELD:
        return title
    if field == EXPLANATION_IMAGE_FIELD:
        return explanation
    index = OPTION_IMAGE_FIELDS.index(field)
    if options is None or index >= len(options):
        return None
    return options[index]


def upload_pending_images(
    pending: Iterable[PendingImage],
    media_store: MediaStore | None,
    *,
    title: dict[str, str] | None = None,
    options: list[dict[str, str]] | None = None,
    explanation: dict[str, str] | None = None,
) -> None:
    """Upload queued attachments and write each URL into its slot.

    Uploads run one at a time in queue order (title, options 0-3, then
    explanation). The first failure propagates and later files are skipped.
    """
    pending = list(pending)
    if not pending:
        return
    if media_store is None:
        raise MediaUploadError("Media storage is not available")

    for image in pending:
        url = media_store.upload(image.data, image.folder)
        slot = _image_slot(image.field, title, options, explanation)
        if slot is not None:
            slot["image"] = url


def _structured_options(value: Any) -> list[dict[str, str]]:
    if not isinstance(value, list):
        return []
    return [media_text(option) for option in value]


def normalize_question(
    raw: Mapping[str, Any],
    files: Mapping[str, UploadedImage] | None = None,
) -> QuestionDraft:
    """Decode a create submission into a QuestionDraft.

    Flat submissions queue their attachments on `draft.pending_images` in
    upload order: title, options 0-3, then explanation.
    """
    files = files or {}
    pending: list[PendingImage] = []

    if is_structured(raw):
        title = media_text(raw["title"])
        options = _structured_options(raw.get("options"))
        explanation = media_text(raw.get("explanation"))
    else:
        title = media_text(text=raw.get("titleText"), image=_string_value(raw.get(TITLE_IMAGE_FIELD)))
        title_ref = _attach(files, TITLE_IMAGE_FIELD, TITLE_FOLDER, pending)
        if title_ref:
            title["image"] = title_ref

        options = []
        for i in range(OPTION_COUNT):
            option = media_text(
                text=raw.get(f"optionText{i}"),
                image=_string_value(raw.get(OPTION_IMAGE_FIELDS[i])),
            )
            option_ref = _attach(files, OPTION_IMAGE_FIELDS[i], OPTIONS_FOLDER, pending)
            if option_ref:
                option["image"] = option_ref
            options.append(option)

        explanation = media_text(
            text=raw.get("explanationText"),
            image=_string_value(raw.get(EXPLANATION_IMAGE_FIELD)),
        )
        explanation_ref = _attach(files, EXPLANATION_IMAGE_FIELD, EXPLANATION_FOLDER, pending)
        if explanation_ref:
            explanation["image"] = explanation_ref

    return QuestionDraft(
        title=title,
        options=options,
        correct_answer=parse_int(raw.get("correctAnswer")),
        explanation=explanation,
        categories=_coerce_categories(raw.get("categories")),
        tags=_coerce_tags(raw.get("tags")),
        difficulty=_difficulty(raw.get("difficulty")),
        created_by=raw.get("createdBy"),
        is_approved=parse_bool(raw.get("isApproved")),
        approved_by=raw.get("approvedBy"),
        pending_images=pending,
    )


def _partial_media(value: Mapping[str, Any]) -> dict[str, str]:
    partial = {}
    for key in ("text", "image"):
        if key in value:
            partial[key] = "" if value[key] is None else str(value[key]).strip()
    return partial


def _flat_partial(
    raw: Mapping[str, Any],
    files: Mapping[str, UploadedImage],
    text_key: str,
    image_key: str,
    folder: str,
    pending: list[PendingImage],
) -> dict[str, str]:
    partial: dict[str, str] = {}
    if text_key in raw:
        partial["text"] = media_text(text=raw[text_key])["text"]
    image = _string_value(raw.get(image_key))
    if image is not None:
        partial["image"] = image.strip()
    ref = _attach(files, image_key, folder, pending)
    if ref:
        partial["image"] = ref
    return partial


def normalize_question_patch(
    raw: Mapping[str, Any],
    files: Mapping[str, UploadedImage] | None = None,
) -> QuestionPatch:
    """Decode an update submission. Only keys present in `raw` become changes.

    A patch may omit the title, so the structured shape is also recognized
    by an `options` array or an `explanation` object.
    """
    files = files or {}
    patch = QuestionPatch()

    structured = (
        is_structured(raw)
        or isinstance(raw.get("options"), list)
        or isinstance(raw.get("explanation"), Mapping)
    )

    if structured:
        if isinstance(raw.get("title"), Mapping):
            patch.title = _partial_media(raw["title"])
        if isinstance(raw.get("options"), list):
            patch.options = _structured_options(raw["options"])
        if isinstance(raw.get("explanation"), Mapping):
            patch.explanation = _partial_media(raw["explanation"])
    else:
        pending = patch.pending_images
        title = _flat_partial(raw, files, "titleText", TITLE_IMAGE_FIELD, TITLE_FOLDER, pending)
        if title:
            patch.title = title
        for i in range(OPTION_COUNT):
            option = _flat_partial(
                raw, files, f"optionText{i}", OPTION_IMAGE_FIELDS[i], OPTIONS_FOLDER, pending
            )
            if option:
                patch.option_updates[i] = option
        explanation = _flat_partial(
            raw, files, "explanationText", EXPLANATION_IMAGE_FIELD, EXPLANATION_FOLDER, pending
        )
        if explanation:
            patch.explanation = explanation

    if "correctAnswer" in raw:
        patch.correct_answer = parse_int(raw["correctAnswer"])
    if "categories" in raw:
        patch.categories = _coerce_categories(raw["categories"])
    if "tags" in raw:
        patch.tags = _coerce_tags(raw["tags"])
    if "difficulty" in raw:
        patch.difficulty = _difficulty(raw["difficulty"])
    if "createdBy" in raw:
        patch.created_by = raw["createdBy"]

    return patch
