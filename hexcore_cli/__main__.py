if __name__ == "__main__":
    try:
        from hexcore_cli.cli import main
        main()
    except ModuleNotFoundError as e:
        if "textual" in str(e) or "click" in str(e):
            import sys
            print("Missing dependency. Install the project first: pip install -e .", file=sys.stderr)
            sys.exit(1)
        raise
