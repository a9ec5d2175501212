"""
tinygoize - Track which Go packages build with tinygo.

Build every package, then keep its '!tinygo || tinygo.enable'
build constraint in step with the result.
"""

from tinygoize.models.status import BuildStatus
from tinygoize.orchestrator import build_dirs
from tinygoize.rewriter import fixup_file_constraints, fixup_pkg_constraints, plan_edit
from tinygoize.runner import BuildCode, BuildOutcome, BuildRunner, ExclusionOracle

__version__ = "0.1.0"
__all__ = [
    "BuildCode",
    "BuildOutcome",
    "BuildRunner",
    "BuildStatus",
    "ExclusionOracle",
    "__version__",
    "build_dirs",
    "fixup_file_constraints",
    "fixup_pkg_constraints",
    "plan_edit",
]
