from dataclasses import replace

import pytest

from recording_discovery.features.session_discovery.domain_patterns.extension import (
    DomainPatternExtension,
    summarize_domain,
)
from recording_discovery.features.session_discovery.domain_patterns.rules import (
    DomainRuleSet,
    LearnedConventions,
)
from recording_discovery.features.session_discovery.scanning.extraction import annotate_file
from recording_discovery.features.session_discovery.scanning.scanner import (
    HierarchicalScanner,
    ScanOptions,
)
from recording_discovery.models.domain.drive_domain import RemoteFile
from recording_discovery.models.domain.session_domain import (
    DomainAnnotation,
    FileRole,
    SessionGroup,
)
from recording_discovery.services.drive.retrying_accessor import (
    RetryingRemoteAccessor,
    RetryPolicy,
)


@pytest.fixture
def rules():
    return DomainRuleSet.for_institution("Ivylevel")


@pytest.fixture
def extension(rules):
    return DomainPatternExtension(
        rules=rules,
        known_coaches=["Jenny", "Alan"],
        extra_excludes=["Archive", "Trash"],
        max_depth=7,
    )


@pytest.fixture
def accessor(fake_store, sleep_recorder):
    return RetryingRemoteAccessor(fake_store, RetryPolicy(), cache_ttl=300, sleep=sleep_recorder)


@pytest.mark.parametrize(
    "text, student_id",
    [
        ("S12_Ivylevel_Week3.mp4", "S12"),
        ("ivylevel-S7 review", "S7"),
        ("Student_42 onboarding", "S42"),
        ("ID-9 check in", "S9"),
        ("Week 3 session", None),
        (None, None),
    ],
)
def test_extract_student_id(rules, text, student_id):
    assert rules.extract_student_id(text) == student_id


def test_vocabulary_matches_are_normalized(rules):
    assert rules.extract_session_type("Office_Hours recap") == "office hours"
    assert rules.extract_program("Data-Science week 2") == "data science"
    assert rules.extract_cohort("Cohort 3 kickoff") == "Cohort 3"
    assert rules.extract_cohort("2024 Fall intake") == "2024 Fall"
    assert rules.extract_session_type("untitled") is None


def test_matches_any_rule(rules):
    assert rules.matches_any_rule("mentoring.mp4")
    assert rules.matches_any_rule("S3_Ivylevel.mp4")
    assert not rules.matches_any_rule("random.mp4")


def test_learned_conventions(rules):
    learned = LearnedConventions()

    learned.learn_from_name("2024-03-01 Priya Coaching", rules)

    assert learned.participant_names == {"Priya"}
    assert learned.naming_conventions == {"date-first"}
    assert learned.matches_convention("2024-05-01 intro.mp4", rules)
    assert not learned.matches_convention("intro.mp4", rules)


def test_learned_names_skip_institution_and_structure(rules):
    learned = LearnedConventions()

    learned.learn_from_name("Ivylevel Coaching Recordings", rules)

    assert learned.participant_names == set()


def test_adjust_options_keeps_caller_depth_and_adds_excludes(extension):
    options = extension.adjust_options(ScanOptions(max_depth=5, exclude_folders=("Drafts",)))

    assert options.max_depth == 5
    assert options.exclude_folders == ("Drafts", "Archive", "Trash")


def test_adjust_options_fills_unset_depth(extension):
    assert extension.adjust_options(ScanOptions()).max_depth == 7


def test_admits_media_matching_domain_rules(extension):
    clip = RemoteFile(id="1", name="Data_Science_review.mp4", size=500_000)
    other = RemoteFile(id="2", name="holiday.mp4", size=500_000)

    assert extension.admits(clip, FileRole.VIDEO)
    assert not extension.admits(clip, FileRole.UNKNOWN)
    assert not extension.admits(other, FileRole.VIDEO)


def test_enrich_adds_domain_annotation_and_confidence(extension):
    file = RemoteFile(id="1", name="S12_Ivylevel_Coaching_Jenny_Week3.mp4", size=500_000)
    annotated = annotate_file(file, "folder-1", "Huda")

    enriched = extension.enrich(annotated)

    assert annotated.confidence == 45
    assert enriched.domain == DomainAnnotation(
        student_id="S12", session_type="coaching", program=None, cohort=None, coach="Jenny"
    )
    assert enriched.participants == ("Jenny",)
    assert enriched.confidence == 80


def test_enrich_adds_names_after_with(extension):
    file = RemoteFile(id="1", name="Check-in with Priya Shah.mp4", size=500_000)
    annotated = annotate_file(file, "folder-1", "Misc")

    enriched = extension.enrich(annotated)

    assert "Priya Shah" in enriched.participants


def test_extract_coach_needs_indicator_for_learned_names(extension):
    extension.learned.participant_names.update({"Maria", "Tom"})

    assert extension.extract_coach("Coach Maria - Tom weekly") == "Maria"
    assert extension.extract_coach("Tom weekly") is None
    assert extension.extract_coach("Alan_and_Tom") == "Alan"


@pytest.mark.asyncio
async def test_learn_samples_top_of_tree(extension, accessor, fake_store):
    fake_store.add_folder("root", "Coaching Recordings")
    fake_store.add_folder("p", "Priya Week 1", "root")
    fake_store.add_folder("q", "2024-02-01 Omar", "p")
    fake_store.add_folder("too-deep", "Zed Notes", "q")

    learned = await extension.learn("root", accessor)

    assert {"Priya", "Omar"} <= learned.participant_names
    assert "Zed" not in learned.participant_names
    assert "date-first" in learned.naming_conventions
    assert set(learned.folder_structures) == {0, 1, 2}


@pytest.mark.asyncio
async def test_learn_tolerates_unreadable_folders(extension, accessor):
    learned = await extension.learn("missing", accessor)

    assert learned.participant_names == set()


@pytest.mark.asyncio
async def test_discover_coach_folders(extension, accessor, fake_store):
    fake_store.add_folder("root", "Shared")
    fake_store.add_folder("a", "Coach Dana", "root")
    fake_store.add_folder("b", "Alan's students", "root")
    fake_store.add_folder("c", "Misc", "root")
    fake_store.add_folder("d", "Mentor Notes", "root")
    fake_store.add_file("f", "Coach handbook.pdf", "root")

    folders = await extension.discover_coach_folders("root", accessor)

    assert [f.id for f in folders] == ["a", "b", "d"]


@pytest.mark.asyncio
async def test_domain_scan_skips_archive_and_annotates(extension, accessor, fake_store):
    fake_store.add_folder("root", "Shared")
    fake_store.add_file("v", "S4-Ivylevel.mp4", "root")
    fake_store.add_folder("arch", "Archive", "root")
    fake_store.add_file("old", "S4-Ivylevel old.mp4", "arch")

    scanner = HierarchicalScanner(accessor, extension)
    files = await scanner.scan("root", ScanOptions())

    assert [f.id for f in files] == ["v"]
    assert files[0].domain.student_id == "S4"


def test_summarize_domain():
    def annotated(name, domain):
        file = annotate_file(RemoteFile(id=name, name=name, size=500_000), "f", "Folder")
        return replace(file, domain=domain)

    groups = [
        SessionGroup(
            id="g1",
            files=[
                annotated("a.mp4", DomainAnnotation(student_id="S1", session_type="coaching")),
                annotated("a.vtt", DomainAnnotation(session_type="coaching", coach="Jenny")),
            ],
        ),
        SessionGroup(
            id="g2",
            files=[annotated("b.mp4", DomainAnnotation(program="python"))],
        ),
    ]

    report = summarize_domain(groups)

    assert report.groups_with_student_id == 1
    assert report.groups_with_coach == 1
    assert report.by_session_type == {"coaching": 2}
    assert report.by_program == {"python": 1}


@pytest.mark.asyncio
async def test_domain_scan_honours_caller_max_depth(extension, accessor, fake_store):
    fake_store.add_folder("root", "Shared")
    fake_store.add_folder("a", "Alex", "root")
    fake_store.add_folder("b", "Sessions", "a")
    fake_store.add_file("deep", "2024-03-01 Coaching with Alex.mp4", "b")

    scanner = HierarchicalScanner(accessor, extension)
    shallow = await scanner.scan("root", ScanOptions(max_depth=1))
    full = await scanner.scan("root", ScanOptions())

    assert shallow == []
    assert [f.id for f in full] == ["deep"]
