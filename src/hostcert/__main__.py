# hostcert/__main__.py

from hostcert.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
