"""Constants shared across httpstat."""

VERSION = "1.0.0"

USER_AGENT = f"httpstat/{VERSION}"

BODY_DISCARDED = "Body discarded"
BODY_READ = "Body read"
