"""Allow ``python -m ipfsctl``."""

from ipfsctl.main import main

main()
