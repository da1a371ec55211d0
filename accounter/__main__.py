import sys

from accounter.cli import main

sys.exit(main())
