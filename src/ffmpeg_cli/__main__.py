"""Allow ``python -m ffmpeg_cli``."""

from ffmpeg_cli.cli import main

if __name__ == "__main__":
    main()
