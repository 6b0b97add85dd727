import sys

from novel_translator.cli import main

sys.exit(main())
