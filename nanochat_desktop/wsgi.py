# Entry point for WSGI servers like Gunicorn

from nanochat_desktop.app import app, main

# Example Gunicorn command (bind to loopback only, the API key travels in plain JSON):
# gunicorn --bind 127.0.0.1:5000 nanochat_desktop.wsgi:app

if __name__ == "__main__":
    # Development server via `python -m nanochat_desktop.wsgi`
    main()
