"""
Size limits and capture settings.
"""

import os
import logging

logger = logging.getLogger(__name__)


class ExtractorConfig:
    """Default extractor configuration."""

    # Report rendering
    RESPONSE_PREVIEW_CHARS = 1000
    COMPACT_QUERY_CHARS = 80
    COMPACT_RESPONSE_CHARS = 100
    TRUNCATION_MARKER = "\n... [truncated]"

    # Live capture (CDP)
    MAX_POST_DATA_SIZE = 65536        # Network.enable maxPostDataSize
    MAX_REQUEST_BODY_CHARS = 100000
    MAX_RESPONSE_BODY_CHARS = 100000
    CAPTURE_TRUNCATION_MARKER = "\n[TRUNCATED]"
    MAX_HAR_CHARS = 50 * 1024 * 1024
    SETTLE_DELAY_SECONDS = 0.5
    VIEWPORT_WIDTH = 1280
    VIEWPORT_HEIGHT = 720

    HAR_CREATOR_NAME = "har-api-extractor"
    HAR_CREATOR_VERSION = "1.0.0"

    RESPONSE_LIMIT_ENV_VAR = "HAR_RESPONSE_LIMIT"

    @classmethod
    def response_limit(cls) -> int:
        """
        Response preview cap, overridable through HAR_RESPONSE_LIMIT.

        Returns:
            Positive character count
        """
        raw = os.getenv(cls.RESPONSE_LIMIT_ENV_VAR)
        if not raw:
            return cls.RESPONSE_PREVIEW_CHARS

        try:
            limit = int(raw)
        except ValueError:
            logger.warning(f"Ignoring non-numeric {cls.RESPONSE_LIMIT_ENV_VAR}={raw!r}")
            return cls.RESPONSE_PREVIEW_CHARS

        if limit <= 0:
            logger.warning(f"Ignoring non-positive {cls.RESPONSE_LIMIT_ENV_VAR}={limit}")
            return cls.RESPONSE_PREVIEW_CHARS
        return limit
