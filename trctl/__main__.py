import sys

from .main import Trctl


main = Trctl(sys.argv)
sys.exit(main())
