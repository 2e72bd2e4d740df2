import pytest
from unittest.mock import MagicMock

from arch_optimizer.config.models import OptimizerConfig
from arch_optimizer.utils.executor import Executor
from arch_optimizer.utils.logger import RichAppLogger


class MockCompletedProcess:
    """A mock object to simulate the return value of subprocess.run."""
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.args = []


@pytest.fixture
def mock_rich_logger():
    """Provides a fully-mocked RichAppLogger instance for dependency injection."""
    mock_logger = MagicMock(spec=RichAppLogger)
    # `logger` is an instance attribute, so spec= does not create it
    mock_logger.logger = MagicMock()
    mock_logger.console = MagicMock()

    mock_context_manager = MagicMock()
    mock_context_manager.__enter__.return_value = None
    mock_context_manager.__exit__.return_value = None
    mock_logger.execution_step.return_value = mock_context_manager

    return mock_logger


@pytest.fixture
def executor(mock_rich_logger):
    """An Executor that never prepends sudo."""
    return Executor(logger_instance=mock_rich_logger, default_timeout=5.0, use_sudo=False)


@pytest.fixture
def config():
    return OptimizerConfig.load_default()


@pytest.fixture
def session(config, mock_rich_logger):
    """A Session whose collaborators are all mocks; results are recorded for real."""
    from arch_optimizer.session import Session

    executor = MagicMock(spec=Executor)
    executor.dry_run = False
    executor.logger = mock_rich_logger
    return Session(
        config=config,
        logger=mock_rich_logger,
        executor=executor,
        pacman=MagicMock(),
        files=MagicMock(),
        services=MagicMock(),
        detector=MagicMock(),
        resolver=MagicMock(**{"resolve.return_value": None}),
        gate=MagicMock(),
    )
