import sys

import pytest
from loguru import logger

from evosearch.utils import LoggingConfig, component_of, setup_logger


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def read_log(path) -> str:
    # closes the file sink so everything is flushed
    logger.remove()
    with open(path, encoding="utf-8") as f:
        return f.read()


class TestSetupLogger:
    def test_component_prefix(self):
        assert component_of("[Evaluator] 3 solutions") == "Evaluator"
        assert component_of("no prefix here") is None

    def test_console_only_by_default(self):
        assert setup_logger(LoggingConfig(enable_colors=False)) is None

    def test_run_file_is_tagged(self, tmp_path):
        log_file = setup_logger(log_dir=str(tmp_path), run_id="run42", enable_colors=False)

        assert log_file.endswith("search_run42.log")
        logger.info("[MOSA] Generation 1")
        content = read_log(log_file)
        assert "run=run42" in content
        assert "[MOSA] Generation 1" in content

    def test_component_levels(self, tmp_path):
        config = LoggingConfig(
            level="DEBUG",
            log_dir=str(tmp_path),
            run_id="quiet",
            enable_colors=False,
            component_levels={"Evaluator": "WARNING"},
        )
        log_file = setup_logger(config)

        logger.debug("[Evaluator] evaluated 10 solutions")
        logger.warning("[Evaluator] oracle crashed")
        logger.debug("[MOSA] front sizes")
        content = read_log(log_file)

        assert "evaluated 10 solutions" not in content
        assert "oracle crashed" in content
        assert "front sizes" in content
