# arch_optimizer/__init__.py

# Utility imports
from .utils.exceptions import ShellCommandError
from .utils.exceptions import CommandNotFoundError
from .utils.exceptions import CommandTimeoutError
from .utils.exceptions import SetupFailure
from .utils.exceptions import CancellationSignal
from .results import MutationResult, ResultStatus

# Import *
__all__ = [
    "ShellCommandError",
    "CommandNotFoundError",
    "CommandTimeoutError",
    "SetupFailure",
    "CancellationSignal",
    "MutationResult",
    "ResultStatus",
]

# Versioning
__version__ = "0.1.0"
