"""Tests for DDDP announcement parsing."""

import pytest

from dell_projector import DddpAnnouncement, DellProjectorError

SAMPLE = b"AMXB<-SDKClass=VideoProjector><-UUID=DEADBEEF><-Make=DULL><-Model=PROJ01><-Revision=0.2.0>"
SRC = ("192.168.1.50", 9131)


def test_parse_sample_announcement():
    """The canonical announcement yields all identity fields and the sender address."""
    ann = DddpAnnouncement.parse(SAMPLE, SRC)
    assert ann is not None
    assert ann.uuid == "DEADBEEF"
    assert ann.make == "DULL"
    assert ann.model == "PROJ01"
    assert ann.revision == "0.2.0"
    assert ann.sdk_class == "VideoProjector"
    assert ann.ip_address == "192.168.1.50"
    assert ann.has_magic


def test_tag_order_does_not_matter():
    data = b"AMXB<-Revision=1.0><-UUID=CAFE><-Model=X><-SDKClass=VideoProjector><-Make=DELL>"
    ann = DddpAnnouncement.parse(data, SRC)
    assert ann is not None
    assert ann.uuid == "CAFE"
    assert ann.make == "DELL"
    assert ann.revision == "1.0"


def test_unknown_tags_are_kept():
    data = SAMPLE + b"<-Colour=Blue>"
    ann = DddpAnnouncement.parse(data, SRC)
    assert ann is not None
    assert ann.tags["Colour"] == "Blue"


def test_non_projector_is_ignored():
    """Announcements without the device class marker are not errors, just irrelevant."""
    data = b"AMXB<-SDKClass=AudioConferencing><-UUID=1234>"
    assert not DddpAnnouncement.is_relevant(data)
    assert DddpAnnouncement.parse(data, SRC) is None


def test_marker_anywhere_is_relevant():
    assert DddpAnnouncement.is_relevant("junk VideoProjector junk")


def test_missing_fields_are_empty():
    ann = DddpAnnouncement.parse(b"AMXB<-SDKClass=VideoProjector>", SRC)
    assert ann is not None
    assert ann.uuid == ""
    assert ann.make == ""
    assert ann.model == ""


def test_malformed_tags_are_skipped():
    data = b"AMXB<-SDKClass=VideoProjector><-UUID><-=nokey><-Make=DULL"
    ann = DddpAnnouncement.parse(data, SRC)
    assert ann is not None
    assert ann.sdk_class == "VideoProjector"
    assert ann.uuid == ""
    # unterminated final tag
    assert ann.make == ""


def test_repeated_tag_keeps_last_value():
    tags = DddpAnnouncement.parse_tags("<-UUID=one><-UUID=two>")
    assert tags == {"UUID": "two"}


def test_missing_magic_is_tolerated():
    ann = DddpAnnouncement.parse(b"<-SDKClass=VideoProjector><-UUID=AB>", SRC)
    assert ann is not None
    assert not ann.has_magic
    assert ann.uuid == "AB"


def test_binary_junk_does_not_raise():
    assert DddpAnnouncement.parse(bytes(range(256)), SRC) is None


def test_build_matches_sample():
    data = DddpAnnouncement.build({
        "SDKClass": "VideoProjector",
        "UUID": "DEADBEEF",
        "Make": "DULL",
        "Model": "PROJ01",
        "Revision": "0.2.0",
    })
    assert data == SAMPLE


def test_build_rejects_unrepresentable_tags():
    with pytest.raises(DellProjectorError):
        DddpAnnouncement.build({"UUID": "bad>value"})
    with pytest.raises(DellProjectorError):
        DddpAnnouncement.build({"a=b": "value"})
    with pytest.raises(DellProjectorError):
        DddpAnnouncement.build({"": "value"})


def test_empty_tag_value_is_not_a_tag():
    ann = DddpAnnouncement.parse(b"AMXB<-SDKClass=VideoProjector><-UUID=><-Make=DULL>", SRC)
    assert ann is not None
    assert ann.uuid == ""
    assert "UUID" not in ann.tags
    assert ann.make == "DULL"


def test_build_leaves_out_empty_values():
    assert DddpAnnouncement.build({"UUID": "AB", "Make": ""}) == b"AMXB<-UUID=AB>"
