"""Package entry point for ``python -m transcript_segmentation``."""

from transcript_segmentation.cli import main

if __name__ == "__main__":
    main()
