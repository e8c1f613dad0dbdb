"""ref_audit — find missing serialized object references in asset trees."""

__all__ = [
    "__version__",
    "ScanConfiguration",
    "ScanResult",
    "RunOutcome",
    "ScanHandle",
    "run",
    "scan_assets",
    "iter_results",
    "validate_root_path",
    "validate_extension",
]
__version__ = "0.1.0"

from ref_audit.api import iter_results, scan_assets  # noqa: E402, F401
from ref_audit.core.config import ScanConfiguration  # noqa: E402, F401
from ref_audit.core.runner import ScanHandle, run  # noqa: E402, F401
from ref_audit.core.validate import validate_extension, validate_root_path  # noqa: E402, F401
from ref_audit.model.scan_result import RunOutcome, ScanResult  # noqa: E402, F401
