"""Main entry point for Ticker Window."""


def main():
    """CLI entry point."""
    from src.cli.app import app
    app()


if __name__ == "__main__":
    main()
