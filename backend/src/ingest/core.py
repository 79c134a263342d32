"""Study assembly orchestrator."""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from dicom_objects.errors import EmptyStudyError
from dicom_objects.models import (
    Image,
    KeyObjectSelection,
    PresentationState,
    Report,
    Series,
    SeriesId,
    SopId,
    Study,
    StudyHeader,
)

from .archive import extract_archive, is_zip_archive
from .config import LoadConfig
from .progress import LoadPhase, ProgressCallback, ProgressReporter
from .scanner import discover_files
from .worker import FileOutcome, SkipReason, decode_files, read_study_header


logger = logging.getLogger(__name__)


class AssemblyState(str, Enum):
    AWAITING_STUDY_HEADER = "awaiting_study_header"
    INGESTING = "ingesting"
    SORTING = "sorting"
    COMPLETE = "complete"
    EMPTY = "empty"


@dataclass
class FileSkip:
    path: Path
    reason: SkipReason
    detail: Optional[str] = None


@dataclass
class AssemblyResult:
    state: AssemblyState
    study: Optional[Study]
    skipped: list[FileSkip] = field(default_factory=list)
    total_files: int = 0
    elapsed: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.state is AssemblyState.EMPTY

    def require_study(self) -> Study:
        if self.study is None or self.is_empty:
            raise EmptyStudyError()
        return self.study

    def skip_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for skip in self.skipped:
            counts[skip.reason.value] = counts.get(skip.reason.value, 0) + 1
        return counts


def _summary(study: Study) -> str:
    images = sum(len(series.images) for series in study.series)
    return (
        f"series={len(study.series)} images={images} reports={len(study.reports)} "
        f"key_objects={len(study.key_object_selections)} presentation_states={len(study.presentation_states)}"
    )


class StudyAssembler:
    """Builds one ``Study`` from a list of candidate files.

    Each ``run`` starts from fresh accumulators, so the same assembler can be
    reused and the same input always yields an equal graph.
    """

    def __init__(
        self,
        config: Optional[LoadConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.config = config or LoadConfig()
        self._progress = progress
        self.state = AssemblyState.AWAITING_STUDY_HEADER

    def _transition(self, state: AssemblyState) -> None:
        logger.info("Study assembly %s -> %s", self.state.value, state.value)
        self.state = state

    def _probe_header(self, paths: Sequence[Path]) -> Optional[StudyHeader]:
        for path in paths[: self.config.header_probe_limit]:
            header = read_study_header(path, self.config)
            if header is not None:
                logger.info("Study header from %s study_id=%s", path, header.study_id)
                return header
        return None

    def run(self, paths: Sequence[Path]) -> AssemblyResult:
        start = time.perf_counter()
        paths = list(paths)
        total = len(paths)
        reporter = ProgressReporter(self._progress)
        self.state = AssemblyState.AWAITING_STUDY_HEADER
        logger.info("Study assembly starting files=%d workers=%d", total, self.config.max_workers)

        reporter.emit(LoadPhase.PARSING, 0, total, message="Reading study header")
        header = self._probe_header(paths)
        if header is None:
            logger.warning(
                "No study header in the first %d of %d file(s)",
                min(total, self.config.header_probe_limit),
                total,
            )
            self._transition(AssemblyState.EMPTY)
            return AssemblyResult(AssemblyState.EMPTY, None, total_files=total, elapsed=time.perf_counter() - start)

        study = Study.from_header(header)
        skipped: list[FileSkip] = []
        series_by_id: dict[SeriesId, Series] = {}
        seen_sop_ids: set[SopId] = set()

        self._transition(AssemblyState.INGESTING)
        for outcome in decode_files(paths, self.config):
            self._accumulate(outcome, study, series_by_id, seen_sop_ids, skipped)
            reporter.emit(LoadPhase.PARSING, outcome.index + 1, total, current_file=outcome.path.name)

        self._transition(AssemblyState.SORTING)
        study.series = sorted(series_by_id.values(), key=lambda s: s.series_number)
        for series in study.series:
            series.images.sort(key=lambda image: image.instance_number)
        reporter.emit(LoadPhase.LOADING, total, total, message="Study assembled")

        elapsed = time.perf_counter() - start
        if not study.series:
            self._transition(AssemblyState.EMPTY)
            return AssemblyResult(AssemblyState.EMPTY, None, skipped, total, elapsed)

        self._transition(AssemblyState.COMPLETE)
        logger.info(
            "Study assembly complete study_id=%s %s skipped=%d elapsed=%.2fs",
            study.study_id,
            _summary(study),
            len(skipped),
            elapsed,
        )
        return AssemblyResult(AssemblyState.COMPLETE, study, skipped, total, elapsed)

    def _accumulate(
        self,
        outcome: FileOutcome,
        study: Study,
        series_by_id: dict[SeriesId, Series],
        seen_sop_ids: set[SopId],
        skipped: list[FileSkip],
    ) -> None:
        if outcome.skip_reason is not None:
            skipped.append(FileSkip(outcome.path, outcome.skip_reason, outcome.detail))
            return

        payload = outcome.payload
        if isinstance(payload, Image):
            if payload.sop_id in seen_sop_ids:
                logger.warning("Duplicate SOP instance %s in %s, skipping", payload.sop_id, outcome.path)
                skipped.append(FileSkip(outcome.path, SkipReason.DUPLICATE, payload.sop_id))
                return
            seen_sop_ids.add(payload.sop_id)
            series = series_by_id.get(payload.series_id)
            if series is None:
                series = outcome.series
                series.study_id = study.study_id
                series_by_id[payload.series_id] = series
            series.images.append(payload)
        elif isinstance(payload, Report):
            study.reports.append(payload)
        elif isinstance(payload, KeyObjectSelection):
            study.key_object_selections.append(payload)
        elif isinstance(payload, PresentationState):
            study.presentation_states.append(payload)


def assemble_study(
    paths: Sequence[Path],
    *,
    config: Optional[LoadConfig] = None,
    progress: Optional[ProgressCallback] = None,
) -> AssemblyResult:
    return StudyAssembler(config, progress).run(paths)


def load_study(
    source: Path,
    *,
    config: Optional[LoadConfig] = None,
    progress: Optional[ProgressCallback] = None,
    workdir: Optional[Path] = None,
) -> AssemblyResult:
    """Load a study from a directory, a ZIP archive or a single file.

    Archives are extracted into *workdir*, or a temporary directory removed
    once assembly finishes. Decoded objects keep the extracted file paths.
    """

    config = config or LoadConfig()
    reporter = ProgressReporter(progress)
    source = Path(source)

    if is_zip_archive(source):
        if workdir is not None:
            extracted = extract_archive(source, Path(workdir), config, reporter)
            paths = discover_files(extracted, config, reporter)
            return assemble_study(paths, config=config, progress=progress)
        with tempfile.TemporaryDirectory(prefix="dicom-load-") as tmp:
            extracted = extract_archive(source, Path(tmp), config, reporter)
            paths = discover_files(extracted, config, reporter)
            return assemble_study(paths, config=config, progress=progress)

    paths = discover_files(source, config, reporter)
    return assemble_study(paths, config=config, progress=progress)
