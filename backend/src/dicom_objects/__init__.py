"""Domain model and decoders for DICOM images, reports, key objects and presentation states."""

from .accessor import DatasetAccessor  # noqa: F401
from .errors import (  # noqa: F401
    ArchiveTooLargeError,
    EmptyStudyError,
    FileTooLargeError,
    LoadError,
    MissingIdentifierError,
)
from .models import (  # noqa: F401
    Finding,
    GraphicAnnotation,
    Image,
    KeyObjectSelection,
    ObjectKind,
    Overlay,
    PresentationState,
    Report,
    Series,
    SeriesId,
    SopId,
    Study,
    StudyId,
)
from .sop_classes import classify  # noqa: F401
