import sys

from chatbook.cli import main

sys.exit(main())
