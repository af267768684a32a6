import pytest

from solar_grabber.models.publish_data import FieldKind, PublishData


def test_entries_keep_insertion_order_per_class():
    data = PublishData()
    data.tag("deviceName", "roof")
    data.field("currentPower", 10.0)
    data.tag("device", "123")
    data.field("yieldToday", 2.5)

    assert [t.name for t in data.tags()] == ["deviceName", "device"]
    assert [f.name for f in data.fields()] == ["currentPower", "yieldToday"]
    assert [e.kind for e in data] == [FieldKind.TAG, FieldKind.FIELD, FieldKind.TAG, FieldKind.FIELD]
    assert len(data) == 4


def test_lookup_returns_first_match_across_classes():
    data = PublishData()
    data.tag("x", "tag-value")
    data.field("x", 1.0)

    assert data["x"] == "tag-value"
    assert data.get("missing") is None
    assert "x" in data
    with pytest.raises(KeyError):
        data["missing"]


def test_ints_become_floats_and_other_types_are_rejected():
    data = PublishData()
    data.field("p", 3)
    assert data["p"] == 3.0
    assert isinstance(data["p"], float)

    with pytest.raises(TypeError):
        data.field("flag", True)
    with pytest.raises(TypeError):
        data.tag("nothing", None)
    with pytest.raises(ValueError):
        data.field("", 1.0)


def test_as_dict_splits_tags_and_fields():
    data = PublishData()
    data.tag("deviceName", "plug")
    data.field("currentPower", 0.0)

    assert data.as_dict() == {
        "tags": {"deviceName": "plug"},
        "fields": {"currentPower": 0.0},
    }
