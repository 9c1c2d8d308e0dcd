import sys

from imfilter.cli import main

sys.exit(main())
