"""Study loading: discovery, archive extraction and assembly."""

from .config import LoadConfig, get_settings, load_config  # noqa: F401
from .core import AssemblyResult, AssemblyState, FileSkip, StudyAssembler, assemble_study, load_study  # noqa: F401
from .progress import LoadPhase, LoadProgress, ProgressReporter  # noqa: F401
from .worker import SkipReason  # noqa: F401
