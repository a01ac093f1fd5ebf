import sys

from media_converter.main import main

sys.exit(main())
