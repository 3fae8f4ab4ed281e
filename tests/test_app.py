from types import SimpleNamespace

from app import track_photo


def test_new_photo_clears_previous_poem():
    state = {}
    track_photo(state, SimpleNamespace(name="lake.png", size=10))
    state["poem_result"] = {"title": "T", "poem": "P"}

    track_photo(state, SimpleNamespace(name="lake.png", size=10))
    assert state["poem_result"] == {"title": "T", "poem": "P"}

    track_photo(state, SimpleNamespace(name="street.jpg", size=20))
    assert state["poem_result"] is None


def test_removing_the_photo_clears_the_poem():
    state = {}
    track_photo(state, SimpleNamespace(name="lake.png", size=10))
    state["poem_result"] = {"title": "T", "poem": "P"}
    track_photo(state, None)
    assert state["poem_result"] is None
