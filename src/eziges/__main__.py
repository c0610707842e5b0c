import sys

from eziges.cli import main

sys.exit(main())
