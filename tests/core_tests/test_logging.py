from loguru import logger

from pkgregistry.core.config import Settings
from pkgregistry.core.logging import configure_logging


def test_file_sink_created(tmp_path):
    log_file = tmp_path / "logs" / "registry.log"
    configure_logging(Settings(_env_file=None, LOG_LEVEL="debug", LOG_FILE=str(log_file)))
    logger.debug("hello from the registry")
    logger.complete()
    configure_logging(Settings(_env_file=None))
    assert "hello from the registry" in log_file.read_text()
