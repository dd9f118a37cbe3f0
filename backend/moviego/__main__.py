"""Run the API: `python -m moviego --port 4000 --limiter_enabled false`."""

from moviego.main import main

if __name__ == "__main__":
    main()
