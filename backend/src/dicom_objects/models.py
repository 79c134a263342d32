"""Dataclass models for an assembled DICOM study.

Identifiers are plain strings at runtime but carry distinct ``NewType`` names so
that a series id is never passed where a SOP instance id is expected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType, Optional

from .geometry import Circle, Ellipse, circle_from_graphic_data, ellipse_from_graphic_data, polyline_points


StudyId = NewType("StudyId", str)
SeriesId = NewType("SeriesId", str)
SopId = NewType("SopId", str)


class ObjectKind(str, Enum):
    """What a decoded dataset represents."""

    IMAGE = "image"
    STRUCTURED_REPORT = "structured_report"
    KEY_OBJECT_SELECTION = "key_object_selection"
    PRESENTATION_STATE = "presentation_state"
    UNKNOWN = "unknown"


class ValueType(str, Enum):
    """Content item value types the report decoder understands."""

    TEXT = "TEXT"
    NUM = "NUM"
    CODE = "CODE"
    CONTAINER = "CONTAINER"
    IMAGE = "IMAGE"


class CompletionFlag(str, Enum):
    PARTIAL = "PARTIAL"
    COMPLETE = "COMPLETE"


class VerificationFlag(str, Enum):
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"


class GraphicType(str, Enum):
    POINT = "POINT"
    POLYLINE = "POLYLINE"
    CIRCLE = "CIRCLE"
    ELLIPSE = "ELLIPSE"
    TEXT = "TEXT"


class OverlayKind(str, Enum):
    GRAPHIC = "G"
    ROI = "R"


@dataclass
class Overlay:
    """One unpacked overlay plane (group 60xx) of an image."""

    group: int
    rows: int
    columns: int
    kind: OverlayKind
    origin: tuple[int, int]
    data: bytes
    bits_allocated: int = 1
    description: Optional[str] = None
    label: Optional[str] = None

    @property
    def set_pixel_count(self) -> int:
        return self.data.count(1)


@dataclass
class Image:
    sop_id: SopId
    series_id: SeriesId
    instance_number: int
    file_path: str
    rows: int
    columns: int
    window_center: Optional[float] = None
    window_width: Optional[float] = None
    slice_location: Optional[float] = None
    slice_thickness: Optional[float] = None
    overlays: Optional[list[Overlay]] = None


@dataclass
class Series:
    series_id: SeriesId
    study_id: Optional[StudyId]
    series_number: int
    description: str
    modality: str
    body_part: Optional[str] = None
    images: list[Image] = field(default_factory=list)


@dataclass
class Finding:
    """Node of a structured report content tree.

    ``value_type`` keeps the raw DICOM value type so that types outside
    :class:`ValueType` (DATE, PNAME, UIDREF, ...) survive decoding.
    """

    concept_name: str
    value: str
    value_type: str
    unit: Optional[str] = None
    children: Optional[list["Finding"]] = None
    referenced_sop_id: Optional[SopId] = None

    @property
    def has_children(self) -> bool:
        return self.children is not None

    def walk(self):
        """Yield this node and its descendants depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.children:
                stack.extend(reversed(node.children))


@dataclass
class Report:
    sop_id: SopId
    series_id: SeriesId
    completion_flag: CompletionFlag
    verification_flag: VerificationFlag
    findings: list[Finding]
    content_date: Optional[str] = None
    title: Optional[str] = None
    evidence_sop_ids: list[SopId] = field(default_factory=list)


@dataclass
class KeyObjectSelection:
    sop_id: SopId
    title: str
    key_images: list[SopId]
    description: Optional[str] = None


@dataclass
class GraphicAnnotation:
    """A presentation-state graphic or text object.

    ``graphic_data`` is a flat x,y buffer interpreted per ``graphic_type``.
    """

    graphic_type: GraphicType
    graphic_data: list[float]
    text_value: Optional[str] = None
    layer: Optional[str] = None
    referenced_sop_ids: Optional[list[SopId]] = None

    def points(self) -> list[tuple[float, float]]:
        return polyline_points(self.graphic_data)

    def circle(self) -> Optional[Circle]:
        if self.graphic_type is not GraphicType.CIRCLE:
            return None
        return circle_from_graphic_data(self.graphic_data)

    def ellipse(self) -> Optional[Ellipse]:
        if self.graphic_type is not GraphicType.ELLIPSE:
            return None
        return ellipse_from_graphic_data(self.graphic_data)


@dataclass
class PresentationState:
    sop_id: SopId
    referenced_sop_ids: list[SopId]
    window_center: Optional[float] = None
    window_width: Optional[float] = None
    label: Optional[str] = None
    annotations: Optional[list[GraphicAnnotation]] = None


@dataclass
class StudyHeader:
    """Study-level fields read from the first file that carries a study id."""

    study_id: StudyId
    patient_name: str
    patient_id: str
    study_date: str
    description: str
    modality: str
    institution_name: Optional[str] = None
    referring_physician: Optional[str] = None


@dataclass
class Study:
    study_id: StudyId
    patient_name: str
    patient_id: str
    study_date: str
    description: str
    modality: str
    institution_name: Optional[str] = None
    referring_physician: Optional[str] = None
    series: list[Series] = field(default_factory=list)
    reports: list[Report] = field(default_factory=list)
    key_object_selections: list[KeyObjectSelection] = field(default_factory=list)
    presentation_states: list[PresentationState] = field(default_factory=list)

    @classmethod
    def from_header(cls, header: StudyHeader) -> "Study":
        return cls(
            study_id=header.study_id,
            patient_name=header.patient_name,
            patient_id=header.patient_id,
            study_date=header.study_date,
            description=header.description,
            modality=header.modality,
            institution_name=header.institution_name,
            referring_physician=header.referring_physician,
        )

    def iter_images(self):
        for series in self.series:
            yield from series.images

    def find_image(self, sop_id: str) -> Optional[Image]:
        """Resolve a possibly dangling reference; None when the image was not loaded."""
        for image in self.iter_images():
            if image.sop_id == sop_id:
                return image
        return None
