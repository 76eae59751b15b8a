from pathlib import Path

from h5pbatch.core.config import build_configuration
from h5pbatch.core.formats import ExportFormat
from h5pbatch.core.processor import ItemPhase, ItemProcessor, ItemStatus
from h5pbatch.core.scanner import DiscoveredItem


def make_processor(tmp_path: Path, context, **options) -> ItemProcessor:
    config = build_configuration(tmp_path / "in", tmp_path / "out", **options)
    return ItemProcessor(config, context, tmp_path / "out")


def test_both_formats_produce_both_directories(tmp_path, fake_engine, fake_context, make_h5p) -> None:
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))
    processor = make_processor(tmp_path, fake_context)

    result = processor.process(item)

    assert result.status is ItemStatus.COMPLETED
    assert result.phase is ItemPhase.COMPLETED
    assert result.outputs == [
        tmp_path / "out" / "quiz" / "SCORM" / "quiz.zip",
        tmp_path / "out" / "quiz" / "HTML" / "index.html",
    ]
    assert (tmp_path / "out" / "quiz" / "SCORM" / "quiz.zip").is_file()
    assert (tmp_path / "out" / "quiz" / "HTML" / "index.html").is_file()
    assert (tmp_path / "out" / "quiz" / "HTML" / "index").is_dir()
    assert fake_engine.store == {}


def test_single_format_produces_only_that_directory(tmp_path, fake_context, make_h5p) -> None:
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))
    processor = make_processor(tmp_path, fake_context, export_format="scorm")

    result = processor.process(item)

    assert result.succeeded
    assert (tmp_path / "out" / "quiz" / "SCORM").is_dir()
    assert not (tmp_path / "out" / "quiz" / "HTML").exists()


def test_export_job_carries_configuration(tmp_path, fake_engine, fake_context, make_h5p) -> None:
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))
    processor = make_processor(
        tmp_path,
        fake_context,
        export_format="external",
        mastery_score=90,
        css_path=tmp_path / "style.css",
        language="fr",
        margin_x=-4,
        show_embed=False,
    )

    processor.process(item)

    (job,) = fake_engine.jobs
    assert job.content_id == "c1"
    assert job.format is ExportFormat.EXTERNAL
    assert job.target_path == tmp_path / "out" / "quiz" / "HTML" / "index.html"
    assert job.options.mastery_score == 90
    assert job.options.css_path == tmp_path / "style.css"
    assert job.options.language == "fr"
    assert job.options.margin_x == -4
    assert job.options.show_embed is False
    assert job.options.show_rights is True


def test_import_failure_is_contained(tmp_path, fake_engine, fake_context, make_corrupt) -> None:
    item = DiscoveredItem.from_path(make_corrupt(tmp_path / "broken.h5p"))
    processor = make_processor(tmp_path, fake_context)

    result = processor.process(item)

    assert result.status is ItemStatus.FAILED
    assert result.phase is ItemPhase.IMPORTING
    assert "Not a valid H5P archive" in result.message
    assert fake_engine.count("export") == 0
    assert fake_engine.count("delete") == 0
    assert fake_engine.store == {}
    assert not (tmp_path / "out" / "broken").exists()


def test_unexpected_error_is_contained(tmp_path, fake_engine, fake_context, make_h5p) -> None:
    fake_engine.import_error = RuntimeError("disk on fire")
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.status is ItemStatus.FAILED
    assert result.message == "disk on fire"


def test_missing_archive_fails_during_import(tmp_path, fake_context) -> None:
    item = DiscoveredItem.from_path(tmp_path / "gone.h5p")

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.status is ItemStatus.FAILED
    assert result.phase is ItemPhase.IMPORTING


def test_export_failure_aborts_remaining_formats_and_cleans_up(
    tmp_path, fake_engine, fake_context, make_h5p
) -> None:
    fake_engine.fail_formats = {ExportFormat.SCORM}
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.status is ItemStatus.FAILED
    assert result.phase is ItemPhase.EXPORTING
    assert [call for call in fake_engine.calls if call[0] == "export"] == [
        ("export", "c1", ExportFormat.SCORM)
    ]
    assert ("delete", "c1") in fake_engine.calls
    assert fake_engine.store == {}
    assert not (tmp_path / "out" / "quiz" / "HTML").exists()


def test_second_format_failure_keeps_first_output(tmp_path, fake_engine, fake_context, make_h5p) -> None:
    fake_engine.fail_formats = {ExportFormat.EXTERNAL}
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.status is ItemStatus.FAILED
    assert result.outputs == [tmp_path / "out" / "quiz" / "SCORM" / "quiz.zip"]
    assert fake_engine.store == {}


def test_cleanup_failure_is_not_escalated(tmp_path, fake_engine, fake_context, make_h5p) -> None:
    fake_engine.fail_delete = True
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.status is ItemStatus.COMPLETED
    assert "Could not delete content c1" in result.cleanup_error


def test_phase_sequence_on_success(tmp_path, fake_context, make_h5p) -> None:
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.phases == [
        ItemPhase.PENDING,
        ItemPhase.IMPORTING,
        ItemPhase.EXPORTING,
        ItemPhase.CLEANING_UP,
        ItemPhase.COMPLETED,
    ]


def test_phase_sequence_on_export_failure(tmp_path, fake_engine, fake_context, make_h5p) -> None:
    fake_engine.fail_formats = {ExportFormat.SCORM}
    item = DiscoveredItem.from_path(make_h5p(tmp_path / "quiz.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.phase is ItemPhase.EXPORTING
    assert result.phases[-2:] == [ItemPhase.EXPORTING, ItemPhase.CLEANING_UP]


def test_phase_sequence_on_import_failure(tmp_path, fake_context, make_corrupt) -> None:
    item = DiscoveredItem.from_path(make_corrupt(tmp_path / "broken.h5p"))

    result = make_processor(tmp_path, fake_context).process(item)

    assert result.phases == [ItemPhase.PENDING, ItemPhase.IMPORTING]


def test_bare_suffix_file_gets_its_own_directory(tmp_path, fake_context, make_h5p) -> None:
    item = DiscoveredItem.from_path(make_h5p(tmp_path / ".h5p"))

    result = make_processor(tmp_path, fake_context, export_format="scorm").process(item)

    assert result.succeeded
    assert result.outputs == [tmp_path / "out" / ".h5p" / "SCORM" / ".h5p.zip"]
    assert sorted(path.name for path in (tmp_path / "out").iterdir()) == [".h5p"]
