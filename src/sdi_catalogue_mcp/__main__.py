"""Allow ``python -m sdi_catalogue_mcp``."""

from . import run

run()
