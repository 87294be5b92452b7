from src.core.errors import BadInput

STATUSES = ("want_to_jam", "learning", "can_play", "nailed_it")
DEFAULT_STATUS = "want_to_jam"
DIFFICULTIES = ("easy", "medium", "hard")
SORT_FIELDS = ("created_at", "artist", "title")

TEXT_LINK_FIELDS = (
    "spotify_id",
    "spotify_url",
    "youtube_url",
    "cover_art_url",
    "songsterr_url",
    "genius_url",
    "chord_chart_url",
)
INT_LINK_FIELDS = ("songsterr_bass_id", "songsterr_drum_id")
LINK_FIELDS = TEXT_LINK_FIELDS + INT_LINK_FIELDS

# Title and artist are fixed once a song exists.
UPDATABLE_FIELDS = ("status", "notes", "bass_difficulty", "drums_difficulty") + LINK_FIELDS

SONG_FIELDS = (
    "id",
    "title",
    "artist",
    "album",
    "status",
    "bass_difficulty",
    "drums_difficulty",
    "spotify_id",
    "spotify_url",
    "youtube_url",
    "cover_art_url",
    "songsterr_url",
    "songsterr_bass_id",
    "songsterr_drum_id",
    "genius_url",
    "chord_chart_url",
    "notes",
    "added_by",
    "created_at",
    "updated_at",
)


def _optional_text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(field, value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise BadInput(f"Invalid {field} value. Must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadInput(f"Invalid {field} value. Must be an integer")


def validate_status(value):
    status = str(value or "").strip()
    if status not in STATUSES:
        raise BadInput(f"Invalid status value. Must be one of: {', '.join(STATUSES)}")
    return status


def _validate_difficulty(field, value):
    text = _optional_text(value)
    if text is None:
        return None
    if text not in DIFFICULTIES:
        raise BadInput(f"Invalid {field} value. Must be one of: {', '.join(DIFFICULTIES)}")
    return text


def validate_sort_field(value):
    field = str(value or "created_at").strip()
    if field not in SORT_FIELDS:
        raise BadInput(f"Invalid sort_by value. Must be one of: {', '.join(SORT_FIELDS)}")
    return field


def validate_new_song(data):
    """Clean a create payload, raising BadInput before anything is written."""
    if not isinstance(data, dict):
        raise BadInput("Request body must be a JSON object")
    title = _optional_text(data.get("title"))
    artist = _optional_text(data.get("artist"))
    if not title or not artist:
        raise BadInput("Missing required fields: title and artist are required")

    fields = {
        "title": title,
        "artist": artist,
        "album": _optional_text(data.get("album")),
        "status": validate_status(data.get("status")) if data.get("status") else DEFAULT_STATUS,
        "bass_difficulty": _validate_difficulty("bass_difficulty", data.get("bass_difficulty")),
        "drums_difficulty": _validate_difficulty("drums_difficulty", data.get("drums_difficulty")),
        "notes": _optional_text(data.get("notes")),
        "added_by": _optional_text(data.get("added_by")),
    }
    for field in TEXT_LINK_FIELDS:
        fields[field] = _optional_text(data.get(field))
    for field in INT_LINK_FIELDS:
        fields[field] = _optional_int(field, data.get(field))
    return fields


def validate_song_update(data):
    """Keep only updatable fields present in ``data``; unknown keys are ignored."""
    if not isinstance(data, dict):
        raise BadInput("Request body must be a JSON object")
    changes = {}
    for field in UPDATABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "status":
            changes[field] = validate_status(value)
        elif field in ("bass_difficulty", "drums_difficulty"):
            changes[field] = _validate_difficulty(field, value)
        elif field in INT_LINK_FIELDS:
            changes[field] = _optional_int(field, value)
        else:
            changes[field] = _optional_text(value)
    return changes
