import sys

from chatterm.cli import main

sys.exit(main())
