import sys

from .server import cli

sys.exit(cli())
