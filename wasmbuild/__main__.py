import sys

from wasmbuild.cli import main


sys.exit(main())
