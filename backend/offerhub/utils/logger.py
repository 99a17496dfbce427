import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger("offerhub")


def mask_token(token: str, show_start: int = 4, show_end: int = 4) -> str:
    """Mask a session token for display in logs."""
    if not token:
        return "None"

    if len(token) <= show_start + show_end:
        return token[:show_start] + "***"

    return token[:show_start] + "***" + token[-show_end:]
