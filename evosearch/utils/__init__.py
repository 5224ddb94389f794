from evosearch.utils.logger_setup import LoggingConfig, component_of, setup_logger

__all__ = ["LoggingConfig", "component_of", "setup_logger"]
