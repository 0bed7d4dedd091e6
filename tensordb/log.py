import logging
import sys


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure the root logger for command-line use.

    Records are written to stdout as "timestamp - logger name - level - message".
    The library itself only creates module loggers and never calls this.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
