import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Send application and uvicorn logs to stdout in one format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Keep uvicorn from installing its own handlers on top of ours
    logging.getLogger("uvicorn").handlers = []
    logging.getLogger("uvicorn").propagate = True
    logging.getLogger("httpx").setLevel(logging.WARNING)
