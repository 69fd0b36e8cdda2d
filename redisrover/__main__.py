"""Module entrypoint for ``python -m redisrover``."""

from .cli import main


if __name__ == "__main__":
    main()
