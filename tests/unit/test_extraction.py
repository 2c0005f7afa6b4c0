import pytest

from recording_discovery.features.session_discovery.scanning.extraction import (
    annotate_file,
    calculate_confidence,
    clean_participant,
    detect_file_role,
    extract_date,
    extract_participants,
    extract_week,
)
from recording_discovery.models.domain.drive_domain import RemoteFile
from recording_discovery.models.domain.session_domain import FileRole


@pytest.mark.parametrize(
    "name, role",
    [
        ("Week 3 session.MP4", FileRole.VIDEO),
        ("voice memo.m4a", FileRole.AUDIO),
        ("Week 3 session.vtt", FileRole.TRANSCRIPT),
        ("Transcript - Week 3.docx", FileRole.TRANSCRIPT),
        ("meeting_saved_chat.txt", FileRole.CHAT),
        ("GMT20240301-150000_Recording.txt", FileRole.CHAT),
        ("notes.pdf", FileRole.UNKNOWN),
        ("plain.txt", FileRole.UNKNOWN),
    ],
)
def test_detect_file_role(name, role):
    assert detect_file_role(name) is role


def test_chat_in_name_wins_over_media_extension():
    assert detect_file_role("Zoom_chat_export.mp4") is FileRole.CHAT


def test_extract_iso_date_next_to_underscore():
    match = extract_date("2024-03-01_Coaching_Alex-Sam_Week5.mp4")

    assert match is not None
    assert match.raw == "2024-03-01"
    assert (match.year, match.month, match.day) == (2024, 3, 1)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Session 03/15/2024.mp4", (2024, 3, 15)),
        ("Call Mar 1, 2024.mp4", (2024, 3, 1)),
        ("Review 1 March 2024", (2024, 3, 1)),
        ("GMT20240301-150000_Recording", (2024, 3, 1)),
        ("export 03152024.mp4", (2024, 3, 15)),
    ],
)
def test_extract_date_formats(name, expected):
    match = extract_date(name)

    assert match is not None
    assert (match.year, match.month, match.day) == expected


def test_extract_date_skips_impossible_components():
    assert extract_date("build 2024-13-45.mp4") is None


@pytest.mark.parametrize("name", [None, "", "no date here"])
def test_extract_date_missing(name):
    assert extract_date(name) is None


def test_extract_participants_with_keyword():
    assert extract_participants("Coaching with Alex.mp4") == ("Alex",)


def test_extract_participants_pair_keeps_order():
    assert extract_participants("2024-03-01_Coaching_Alex-Sam_Week5.mp4") == ("Alex", "Sam")


def test_extract_participants_and_conjunction():
    assert extract_participants("Alex and Sam") == ("Alex", "Sam")


def test_extract_participants_none_for_structural_names():
    assert extract_participants("Week 3 Recording") is None
    assert extract_participants("meeting_notes.pdf") is None


def test_clean_participant_drops_structural_words():
    assert clean_participant("Zoom Recording") is None
    assert clean_participant("Alex Coaching") == "Alex"


@pytest.mark.parametrize(
    "name, number, token",
    [
        ("Week 5 - Alex", 5, "5"),
        ("Wk_12 check-in", 12, "12"),
        ("W3_coaching.mp4", 3, "3"),
        ("Week 00A onboarding", 0, "00A"),
        ("module 4 recap", 4, "4"),
    ],
)
def test_extract_week(name, number, token):
    week = extract_week(name)

    assert week is not None
    assert week.number == number
    assert week.token == token


def test_extract_week_missing():
    assert extract_week("intro video") is None


def test_confidence_is_additive_and_capped():
    assert (
        calculate_confidence(
            "Zoom Recording coaching call",
            "",
            has_date=True,
            has_participants=True,
            has_week=True,
        )
        == 100
    )
    assert (
        calculate_confidence("notes.pdf", "", has_date=False, has_participants=False, has_week=False)
        == 0
    )


def test_annotate_file_falls_back_to_folder_name():
    file = RemoteFile(id="f1", name="video1.mp4", size=500_000)

    annotated = annotate_file(file, "folder-1", "2024-03-01 Week 5 with Alex")

    assert annotated.role is FileRole.VIDEO
    assert annotated.date.raw == "2024-03-01"
    assert annotated.participants == ("Alex",)
    assert annotated.week.number == 5
    assert annotated.confidence == 55
    assert annotated.parent_folder_id == "folder-1"


def test_annotate_file_prefers_file_name():
    file = RemoteFile(id="f1", name="2024-04-02_Coaching_Alex-Sam_Week6.mp4", size=500_000)

    annotated = annotate_file(file, "folder-1", "2024-03-01 Week 5")

    assert annotated.date.raw == "2024-04-02"
    assert annotated.week.number == 6
    assert annotated.participants == ("Alex", "Sam")
