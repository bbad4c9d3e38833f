import sys

from signalbt.cli import main

sys.exit(main())
