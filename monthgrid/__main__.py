import sys

from monthgrid.cli import main

sys.exit(main())
