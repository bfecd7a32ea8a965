import sys

from tripnotify.cli import main

sys.exit(main())
