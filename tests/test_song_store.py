import pytest

from src.core.errors import BadInput, NotFound
from src.songs.validation import validate_new_song, validate_song_update


def test_insert_sets_identity_and_defaults(store):
    song = store.insert(validate_new_song({"title": "Creep", "artist": "Radiohead"}))
    assert song["id"]
    assert song["status"] == "want_to_jam"
    assert song["created_at"] == song["updated_at"]
    assert store.get(song["id"]) == song


def test_store_allows_duplicate_title_artist(store, add_song):
    add_song("Creep", "Radiohead")
    add_song("creep", "radiohead")
    assert len(store.list_all()) == 2


def test_list_all_orders_and_filters(store, add_song):
    add_song("B Song", "Zed", status="learning")
    add_song("A Song", "Abba")
    add_song("C Song", "Mid", status="learning")

    assert [s["title"] for s in store.list_all()] == ["B Song", "A Song", "C Song"]
    assert [s["title"] for s in store.list_all(descending=True)] == ["C Song", "A Song", "B Song"]
    assert [s["artist"] for s in store.list_all(sort_by="artist")] == ["Abba", "Mid", "Zed"]
    assert [s["title"] for s in store.list_all(status="learning")] == ["B Song", "C Song"]


def test_list_all_rejects_bad_status_and_sort(store):
    with pytest.raises(BadInput):
        store.list_all(status="mastered")
    with pytest.raises(BadInput):
        store.list_all(sort_by="id; DROP TABLE songs")


def test_update_only_touches_allowed_fields(store, add_song):
    song = add_song("Creep", "Radiohead")
    updated = store.update(
        song["id"],
        {"status": "nailed_it", "notes": "drop D", "title": "Renamed", "artist": "Someone"},
    )
    assert updated["status"] == "nailed_it"
    assert updated["notes"] == "drop D"
    assert updated["title"] == "Creep"
    assert updated["artist"] == "Radiohead"
    assert updated["updated_at"] >= song["updated_at"]
    assert updated["created_at"] == song["created_at"]


def test_update_and_delete_missing_song(store):
    with pytest.raises(NotFound):
        store.update("missing", {"status": "learning"})
    with pytest.raises(NotFound):
        store.delete("missing")
    with pytest.raises(NotFound):
        store.get("missing")


def test_delete_removes_song(store, add_song):
    song = add_song("Creep", "Radiohead")
    store.delete(song["id"])
    assert store.list_all() == []


def test_validate_new_song_requires_title_and_artist():
    with pytest.raises(BadInput):
        validate_new_song({"title": "Creep"})
    with pytest.raises(BadInput):
        validate_new_song({"title": "   ", "artist": "Radiohead"})
    with pytest.raises(BadInput):
        validate_new_song(["not", "a", "dict"])


def test_validate_new_song_checks_enums():
    with pytest.raises(BadInput):
        validate_new_song({"title": "Creep", "artist": "Radiohead", "status": "mastered"})
    with pytest.raises(BadInput):
        validate_new_song({"title": "Creep", "artist": "Radiohead", "bass_difficulty": "insane"})
    fields = validate_new_song(
        {
            "title": " Creep ",
            "artist": "Radiohead",
            "drums_difficulty": "hard",
            "songsterr_bass_id": "123",
            "chord_chart_url": "",
        }
    )
    assert fields["title"] == "Creep"
    assert fields["drums_difficulty"] == "hard"
    assert fields["songsterr_bass_id"] == 123
    assert fields["chord_chart_url"] is None


def test_validate_song_update_drops_immutable_fields():
    changes = validate_song_update({"title": "X", "artist": "Y", "status": "learning", "notes": None})
    assert changes == {"status": "learning", "notes": None}
    with pytest.raises(BadInput):
        validate_song_update({"status": "bogus"})
    with pytest.raises(BadInput):
        validate_song_update({"songsterr_drum_id": "abc"})
