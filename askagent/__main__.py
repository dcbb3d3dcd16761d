import sys

from askagent.cli import main

sys.exit(main())
