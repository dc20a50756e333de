import sys
import logging

from studyfocus.core.orchestrator import FocusSystem
from studyfocus.infrastructure.hardware.camera import CameraError

log = logging.getLogger(__name__)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    system = FocusSystem(argv[0]) if argv else FocusSystem()
    try:
        summary = system.run()
    except CameraError:
        return 1
    log.info(f"Session summary: {summary}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
